"""
Chord Builder
Turns a root + modifier set into a close-position chord of MIDI pitches.

This is the tone provider the voicing solver calls for every chord and every
octave it tries. Chord construction rules (triad qualities, sevenths,
extensions, alterations) live in theory_definitions.json; note names are
resolved with music21.
"""

import json

import music21

from voicing_theory import default_theory_path
from voicing_types import CloseChord, clamp_pitch

DEFAULT_THEORY_FILE = default_theory_path()


class ChordBuilder:
    def __init__(self, theory_file=DEFAULT_THEORY_FILE):
        with open(theory_file, 'r') as f:
            self.theory = json.load(f)

        self._known_modifiers = (
            set(self.theory['quality_precedence'])
            | set(self.theory['alterations'])
            | set(self.theory['sevenths'])
            | set(self.theory['extensions'])
            | {self.theory['sixth']['modifier'], 'major'}
        )

    def _root_pitch_class(self, root):
        """
        Resolve a root to a pitch class 0-11. Accepts an int pitch class or a
        note name ('C', 'F#', 'Bb', 'B-'). Returns None for an unreadable name.
        """
        if isinstance(root, int):
            return root % 12

        name = str(root).strip()
        # music21 spells flats with '-'
        name = name[0] + name[1:].replace('b', '-')
        try:
            return music21.pitch.Pitch(name).pitchClass
        except (music21.exceptions21.Music21Exception, ValueError):
            print(f"Warning: Unreadable root note name '{root}'.")
            return None

    def _intervals_for(self, modifiers):
        """Return (quality, sorted unique intervals) for a modifier set."""
        triads = self.theory['triads']

        quality = 'major'
        for name in self.theory['quality_precedence']:
            if name in modifiers:
                quality = name
                break
        intervals = list(triads[quality])

        for modifier, swap in self.theory['alterations'].items():
            if modifier in modifiers and swap['replace'] in intervals:
                intervals[intervals.index(swap['replace'])] = swap['with']

        if 'dom7' in modifiers:
            if quality == 'diminished':
                intervals.append(self.theory['diminished_seventh'])
            else:
                intervals.append(self.theory['sevenths']['dom7'])
        if 'maj7' in modifiers:
            intervals.append(self.theory['sevenths']['maj7'])

        # A sixth only when no seventh was asked for
        sixth = self.theory['sixth']
        if sixth['modifier'] in modifiers and not (modifiers & set(self.theory['sevenths'])):
            intervals.append(sixth['interval'])

        for modifier, interval in self.theory['extensions'].items():
            if modifier in modifiers:
                intervals.append(interval)

        return quality, sorted(set(intervals))

    def build_close_chord(self, root, modifiers=(), octave=4):
        """
        Build the close-position chord for root + modifiers at the given octave.

        Returns None (never raises) when there is no usable root, so callers
        can treat the chord as having no candidates.
        """
        if root is None or (isinstance(root, str) and not root.strip()):
            return None

        pc = self._root_pitch_class(root)
        if pc is None:
            return None

        modifiers = frozenset(modifiers)
        for modifier in sorted(modifiers - self._known_modifiers):
            print(f"Warning: Unknown chord modifier '{modifier}' ignored.")

        quality, intervals = self._intervals_for(modifiers)

        # MIDI 60 = C4
        root_pitch = clamp_pitch(12 * (octave + 1) + pc)
        tones = tuple(clamp_pitch(root_pitch + iv) for iv in intervals)

        return CloseChord(
            root=pc,
            root_pitch=root_pitch,
            tones=tones,
            quality=quality,
            modifiers=modifiers,
            intervals=tuple(intervals),
            octave=octave,
        )


def invert_chord(tones, inversion_index=0):
    """
    Rotate the lowest tone up an octave `inversion_index` times (wrapping at
    the tone count). Returns a new ascending list.
    """
    inverted = sorted(tones)
    if not inverted or inversion_index <= 0:
        return inverted

    for _ in range(inversion_index % len(inverted)):
        lowest = inverted.pop(0)
        inverted.append(clamp_pitch(lowest + 12))
    return sorted(inverted)


def inversion_count(tones):
    return len(tones) if tones else 0


def pitch_name(midi):
    """Scientific pitch name for a MIDI number, e.g. 60 -> 'C4'."""
    return music21.pitch.Pitch(midi=midi).nameWithOctave
