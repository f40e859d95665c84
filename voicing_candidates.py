"""
Candidate generation and inter-chord distance for the voicing solver.

For each chord the generator enumerates concrete voicings around the
requested octave; the distance metric scores how far the voices move from
one candidate to the next.
"""

import math

from chord_builder import invert_chord
from voicing_types import Candidate, VoicingSettings, VoicingStyle
from voicing_transforms import apply_progressive_drop, apply_spread, apply_style

MIN_OCTAVE = 1
MAX_OCTAVE = 7
MAX_SPREAD = 3

# Cost of a voice that has no partner in the other chord (one octave)
UNMATCHED_VOICE_PENALTY = 12

RESOLUTION_BONUS = 4
RESOLUTION_MAX_STEP = 2

# Cost per unit of spread per unit of spread preference
SPREAD_PREFERENCE_WEIGHT = 6.0

_THIRDS = (3, 4)
_SEVENTHS = (10, 11)


def candidate_octaves(requested_octave):
    """One octave either side of the request, clamped to [1, 7], no repeats."""
    octaves = []
    for shift in (-1, 0, 1):
        octave = max(MIN_OCTAVE, min(MAX_OCTAVE, requested_octave + shift))
        if octave not in octaves:
            octaves.append(octave)
    return octaves


def build_voicing(chord, settings):
    """
    Realise settings on a close chord: drop -> spread -> invert -> style.
    Shared by candidate generation and playback so both see the same notes.
    """
    if chord is None or not chord.tones:
        return []

    notes = apply_progressive_drop(chord.tones, settings.dropped_notes)
    notes = apply_spread(notes, settings.spread_amount)
    notes = invert_chord(notes, settings.inversion_index)

    if settings.voicing_style != VoicingStyle.CLOSE:
        notes = apply_style(settings.voicing_style, chord.with_tones(notes))
    return sorted(notes)


def generate_candidates(spec, tone_provider, requested_octave, allowed_styles=None):
    """
    Enumerate the candidate voicings for one chord.

    Without allowed_styles every (inversion, spread, drop) combination of the
    close chord is produced at each octave. With allowed_styles each style
    contributes one candidate per octave, straight from its transform.
    Returns [] when the tone provider has no chord for this spec.
    """
    candidates = []

    for octave in candidate_octaves(requested_octave):
        chord = tone_provider(spec.root, spec.modifiers, octave)
        if chord is None or not chord.tones:
            continue

        if allowed_styles:
            combos = [VoicingSettings(voicing_style=style, octave=octave)
                      for style in allowed_styles]
        else:
            tone_count = len(chord.tones)
            combos = [
                VoicingSettings(inversion_index=inversion, spread_amount=spread,
                                dropped_notes=drop, octave=octave)
                for inversion in range(tone_count)
                for spread in range(MAX_SPREAD + 1)
                for drop in range(tone_count)
            ]

        for settings in combos:
            notes = build_voicing(chord, settings)
            if notes:
                candidates.append(Candidate(settings=settings, notes=tuple(notes)))

    return candidates


def voice_distance(a, b):
    """
    Bass-up movement between two voicings: sum of |a[i] - b[i]| over the
    shorter length plus one octave per unmatched voice. Infinite if either
    voicing is empty.
    """
    if not a or not b:
        return math.inf

    a = sorted(a)
    b = sorted(b)
    matched = min(len(a), len(b))

    total = sum(abs(a[i] - b[i]) for i in range(matched))
    total += (max(len(a), len(b)) - matched) * UNMATCHED_VOICE_PENALTY
    return total


def _interval(note, root_pitch):
    return (note - root_pitch) % 12


def resolution_bonus(a, b, root_a, root_b):
    """
    Reward for 7th -> 3rd (or 3rd -> 7th) motion by step between matched
    voices, the guide-tone line of a ii-V-I.
    """
    a = sorted(a)
    b = sorted(b)
    bonus = 0
    for i in range(min(len(a), len(b))):
        if abs(a[i] - b[i]) > RESOLUTION_MAX_STEP:
            continue
        from_iv = _interval(a[i], root_a)
        to_iv = _interval(b[i], root_b)
        if (from_iv in _SEVENTHS and to_iv in _THIRDS) or \
           (from_iv in _THIRDS and to_iv in _SEVENTHS):
            bonus += RESOLUTION_BONUS
    return bonus


def spread_adjustment(spread_amount, preference):
    """Negative preference favours tight voicings, positive favours wide ones."""
    if not preference:
        return 0.0
    return -SPREAD_PREFERENCE_WEIGHT * preference * spread_amount
