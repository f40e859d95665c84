"""
Voicing Transforms
Pure functions that rearrange a close-position chord into a named voicing
style, plus the register helpers the solver uses to keep each style in a
sensible part of the keyboard.

Style vocabulary:
- close:         identity
- rootless-a/b:  Bill Evans 3-5-7-9 / 7-9-3-5, root omitted
- shell:         Bud Powell root + 3rd + 7th
- quartal:       McCoy Tyner stacked fourths ("So What" for minor chords)
- drop2/3/24:    Barry Harris drop voicings, counted from the top
- upper-struct:  major triad a minor third above the root, over the tritone

Every function returns a new ascending list of MIDI pitches in [0, 127] and
never raises for a chord with at least one tone. When a style cannot be
realised from the chord's tones, the original tones come back unchanged.
"""

import math
from typing import NamedTuple

from voicing_types import VoicingStyle, clamp_pitch

MINOR_THIRD = 3
MAJOR_THIRD = 4
DIMINISHED_FIFTH = 6
PERFECT_FIFTH = 7
AUGMENTED_FIFTH = 8
MAJOR_SIXTH = 9
DIMINISHED_SEVENTH = 9
MINOR_SEVENTH = 10
MAJOR_SEVENTH = 11
MINOR_NINTH = 13
MAJOR_NINTH = 14
AUGMENTED_NINTH = 15
PERFECT_FOURTH = 5


def _sorted_clamped(notes):
    return sorted(clamp_pitch(n) for n in notes)


def _find_by_interval(root_pitch, notes, intervals, exclude=None):
    """
    First chord tone whose distance from the root (mod 12) matches one of
    `intervals`, tried in order. Returns None when nothing matches.
    """
    for interval in intervals:
        target = interval % 12
        for note in notes:
            if note == exclude:
                continue
            if (note - root_pitch) % 12 == target:
                return note
    return None


def _third(chord):
    return _find_by_interval(chord.root_pitch, chord.tones, (MAJOR_THIRD, MINOR_THIRD))


def _fifth(chord):
    return _find_by_interval(chord.root_pitch, chord.tones,
                             (PERFECT_FIFTH, DIMINISHED_FIFTH, AUGMENTED_FIFTH))


def _seventh(chord):
    return _find_by_interval(chord.root_pitch, chord.tones,
                             (MAJOR_SEVENTH, MINOR_SEVENTH, DIMINISHED_SEVENTH))


def _ninth(chord, third):
    # An augmented ninth shares a pitch class with the minor third
    return _find_by_interval(chord.root_pitch, chord.tones,
                             (MAJOR_NINTH, MINOR_NINTH, AUGMENTED_NINTH),
                             exclude=third)


def _put_on_bottom(notes, anchor):
    """Lower `anchor` by octaves until it sits below every other note."""
    result = list(notes)
    index = result.index(anchor)
    others = result[:index] + result[index + 1:]
    if not others:
        return sorted(result)
    lowest_other = min(others)
    while result[index] >= lowest_other and result[index] - 12 >= 0:
        result[index] -= 12
    return sorted(result)


# ---------------------------------------------------------------------------
# Styles
# ---------------------------------------------------------------------------

def apply_close(chord):
    return list(chord.tones)


def apply_rootless_a(chord):
    """
    Type A rootless voicing 3-5-7-9 with the 3rd on the bottom. A natural 9th
    (root + 14) is added when the chord has none.
    """
    third = _third(chord)
    fifth = _fifth(chord)
    seventh = _seventh(chord)
    ninth = _ninth(chord, third)
    if ninth is None:
        ninth = clamp_pitch(chord.root_pitch + MAJOR_NINTH)

    result = [n for n in (third, fifth, seventh, ninth) if n is not None]
    if len(result) < 3:
        return list(chord.tones)

    if third is not None:
        result = _put_on_bottom(result, third)
    return _sorted_clamped(result)


def apply_rootless_b(chord):
    """Type B rootless voicing 7-9-3-5 with the 7th on the bottom."""
    third = _third(chord)
    fifth = _fifth(chord)
    seventh = _seventh(chord)
    ninth = _ninth(chord, third)
    if ninth is None:
        ninth = clamp_pitch(chord.root_pitch + MAJOR_NINTH)

    result = [n for n in (seventh, ninth, third, fifth) if n is not None]
    if len(result) < 3:
        return list(chord.tones)

    if seventh is not None:
        result = _put_on_bottom(result, seventh)
    return _sorted_clamped(result)


def apply_shell(chord):
    """Root + 3rd + 7th (a 6th stands in for a missing 7th)."""
    third = _third(chord)
    seventh = _seventh(chord)
    if seventh is None:
        seventh = _find_by_interval(chord.root_pitch, chord.tones, (MAJOR_SIXTH,))

    result = [chord.root_pitch] + [n for n in (third, seventh) if n is not None]
    if len(result) < 2:
        return list(chord.tones)
    return _sorted_clamped(result)


def apply_quartal(chord):
    root = chord.root_pitch

    if chord.is_minor:
        # "So What": fourths up from the minor 3rd, major 3rd on top
        base = root + MINOR_THIRD
        return _sorted_clamped([base, base + 5, base + 10, base + 15, base + 19])

    if chord.has_dominant_seventh:
        base = root + MINOR_SEVENTH
        return _sorted_clamped([base, base + 5, base + 10, base + 15])

    result = [root, root + PERFECT_FOURTH, root + 10, root + 15]
    if chord.quality == 'major':
        result.append(root + 19)
    return _sorted_clamped(result)


def apply_upper_structure(chord):
    """
    Tritone (major 3rd + 7th) under a major triad built a minor third above
    the root. For C7 that is E-Bb under Eb-G-Bb.
    """
    root = chord.root_pitch
    third = _find_by_interval(root, chord.tones, (MAJOR_THIRD,))
    seventh = _find_by_interval(root, chord.tones, (MINOR_SEVENTH, MAJOR_SEVENTH))

    upper_root = root + MINOR_THIRD
    upper = [upper_root, upper_root + MAJOR_THIRD, upper_root + PERFECT_FIFTH]

    result = {clamp_pitch(n) for n in [third, seventh] + upper if n is not None}
    if len(result) < 4:
        return list(chord.tones)
    return sorted(result)


def _drop_from_top(tones, positions):
    if len(tones) < 4:
        return list(tones)
    result = sorted(tones)
    for position in positions:
        result[len(result) - position] -= 12
    return _sorted_clamped(result)


def apply_drop2(chord):
    return _drop_from_top(chord.tones, (2,))


def apply_drop3(chord):
    return _drop_from_top(chord.tones, (3,))


def apply_drop24(chord):
    return _drop_from_top(chord.tones, (2, 4))


STYLE_TRANSFORMS = {
    VoicingStyle.CLOSE: apply_close,
    VoicingStyle.ROOTLESS_A: apply_rootless_a,
    VoicingStyle.ROOTLESS_B: apply_rootless_b,
    VoicingStyle.SHELL: apply_shell,
    VoicingStyle.QUARTAL: apply_quartal,
    VoicingStyle.DROP2: apply_drop2,
    VoicingStyle.DROP3: apply_drop3,
    VoicingStyle.DROP24: apply_drop24,
    VoicingStyle.UPPER_STRUCTURE: apply_upper_structure,
}


def apply_style(style, chord):
    """Apply a voicing style to a close chord. Empty chords come back empty."""
    if not chord.tones:
        return []
    return STYLE_TRANSFORMS[VoicingStyle(style)](chord)


def cycle_voicing_style(current, styles):
    """Next style after `current` in `styles`, wrapping round."""
    styles = list(styles)
    if not styles:
        return current
    if current not in styles:
        return styles[0]
    return styles[(styles.index(current) + 1) % len(styles)]


# ---------------------------------------------------------------------------
# Drop / spread
# ---------------------------------------------------------------------------

def apply_progressive_drop(tones, drop_count):
    """
    Move the highest `drop_count` tones down an octave, top first. The lowest
    tone always stays put.

    apply_progressive_drop([60, 64, 67, 72], 1) -> [60, 60, 64, 67]
    apply_progressive_drop([60, 64, 67, 72], 2) -> [55, 60, 60, 64]
    """
    result = sorted(tones)
    if drop_count <= 0 or not result:
        return result

    for i in range(min(drop_count, len(result) - 1)):
        index = len(result) - 1 - i
        result[index] = clamp_pitch(result[index] - 12)
    return sorted(result)


def apply_spread(tones, spread_amount):
    """
    Raise every tone at an odd sorted index by `spread_amount` octaves.

    apply_spread([60, 64, 67, 72], 1) -> [60, 67, 76, 84]
    """
    result = sorted(tones)
    if spread_amount <= 0 or len(result) < 2:
        return result

    for i in range(1, len(result), 2):
        result[i] = clamp_pitch(result[i] + 12 * spread_amount)
    return sorted(result)


# ---------------------------------------------------------------------------
# Register constraints
# ---------------------------------------------------------------------------

class RegisterRange(NamedTuple):
    min: int
    max: int
    ideal: int


# C3 = 48, C4 = 60, C5 = 72
REGISTER_CONSTRAINTS = {
    VoicingStyle.CLOSE: RegisterRange(36, 96, 60),
    VoicingStyle.ROOTLESS_A: RegisterRange(48, 79, 60),
    VoicingStyle.ROOTLESS_B: RegisterRange(48, 79, 60),
    VoicingStyle.SHELL: RegisterRange(36, 72, 54),    # root underneath, can sit lower
    VoicingStyle.QUARTAL: RegisterRange(48, 79, 60),
    VoicingStyle.UPPER_STRUCTURE: RegisterRange(52, 84, 64),
    VoicingStyle.DROP2: RegisterRange(40, 84, 58),
    VoicingStyle.DROP3: RegisterRange(36, 84, 54),
    VoicingStyle.DROP24: RegisterRange(36, 84, 54),
}


def register_penalty(notes, style):
    """
    3 points per semitone outside the style's [min, max] plus 0.5 per semitone
    the voicing's centre sits away from the ideal centre. 0 for no notes.
    """
    if not notes:
        return 0.0

    bounds = REGISTER_CONSTRAINTS.get(style, REGISTER_CONSTRAINTS[VoicingStyle.CLOSE])
    lowest, highest = min(notes), max(notes)
    center = (lowest + highest) / 2

    penalty = 0.0
    if lowest < bounds.min:
        penalty += (bounds.min - lowest) * 3
    if highest > bounds.max:
        penalty += (highest - bounds.max) * 3
    penalty += abs(center - bounds.ideal) * 0.5
    return penalty


def constrain_to_register(notes, style):
    """
    Shift a voicing by whole octaves into the style's register. Voicings wider
    than the register are returned unchanged; voicings already inside it are
    re-centred on the ideal only when the shifted voicing still fits.
    """
    if not notes:
        return list(notes)

    bounds = REGISTER_CONSTRAINTS.get(style, REGISTER_CONSTRAINTS[VoicingStyle.CLOSE])
    lowest, highest = min(notes), max(notes)
    if highest - lowest > bounds.max - bounds.min:
        return list(notes)

    shift = 0
    if lowest < bounds.min:
        shift = -(-(bounds.min - lowest) // 12) * 12
    elif highest > bounds.max:
        shift = -(-(highest - bounds.max) // 12) * -12
    else:
        center = (lowest + highest) / 2
        ideal_shift = math.floor((bounds.ideal - center) / 12 + 0.5) * 12
        if lowest + ideal_shift >= bounds.min and highest + ideal_shift <= bounds.max:
            shift = ideal_shift

    if shift == 0:
        return list(notes)
    return [clamp_pitch(n + shift) for n in notes]
