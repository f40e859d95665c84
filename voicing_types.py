"""
Shared types for the chord voicing core.

A ChordSpec is what the caller hands in (root + modifiers + octave, plus any
settings the preset layer already stored). The tone provider turns it into a
CloseChord; the candidate generator and solver work on sorted MIDI pitch
lists and hand back one VoicingSettings per chord.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

MIDI_MIN = 0
MIDI_MAX = 127


def clamp_pitch(value: int) -> int:
    """Clamp a pitch into the MIDI range [0, 127]."""
    return max(MIDI_MIN, min(MIDI_MAX, int(value)))


class VoicingStyle(str, Enum):
    CLOSE = 'close'
    ROOTLESS_A = 'rootless-a'
    ROOTLESS_B = 'rootless-b'
    SHELL = 'shell'
    QUARTAL = 'quartal'
    DROP2 = 'drop2'
    DROP3 = 'drop3'
    DROP24 = 'drop24'
    UPPER_STRUCTURE = 'upper-struct'


VOICING_STYLES = tuple(VoicingStyle)

VOICING_STYLE_LABELS = {
    VoicingStyle.CLOSE: 'Close',
    VoicingStyle.ROOTLESS_A: 'Rootless A',
    VoicingStyle.ROOTLESS_B: 'Rootless B',
    VoicingStyle.SHELL: 'Shell',
    VoicingStyle.QUARTAL: 'Quartal',
    VoicingStyle.DROP2: 'Drop 2',
    VoicingStyle.DROP3: 'Drop 3',
    VoicingStyle.DROP24: 'Drop 2+4',
    VoicingStyle.UPPER_STRUCTURE: 'Upper Struct',
}


def parse_style(value) -> VoicingStyle | None:
    """Coerce a style name (or VoicingStyle) to VoicingStyle, None if unknown."""
    if isinstance(value, VoicingStyle):
        return value
    try:
        return VoicingStyle(str(value))
    except ValueError:
        return None


@dataclass(frozen=True)
class VoicingSettings:
    inversion_index: int = 0
    spread_amount: int = 0       # 0-3 octaves
    dropped_notes: int = 0       # legacy progressive drop
    voicing_style: VoicingStyle = VoicingStyle.CLOSE
    octave: int = 4

    def to_dict(self) -> dict:
        """Field names as stored by the preset layer."""
        return {
            'inversionIndex': self.inversion_index,
            'spreadAmount': self.spread_amount,
            'droppedNotes': self.dropped_notes,
            'voicingStyle': self.voicing_style.value,
            'octave': self.octave,
        }

    @classmethod
    def from_dict(cls, data: dict, default_octave: int = 4) -> VoicingSettings:
        style = parse_style(data.get('voicingStyle', VoicingStyle.CLOSE.value))
        if style is None:
            print(f"Warning: Unknown voicing style '{data.get('voicingStyle')}', using close.")
            style = VoicingStyle.CLOSE
        return cls(
            inversion_index=int(data.get('inversionIndex') or 0),
            spread_amount=int(data.get('spreadAmount') or 0),
            dropped_notes=int(data.get('droppedNotes') or 0),
            voicing_style=style,
            octave=int(default_octave if data.get('octave') is None else data['octave']),
        )


@dataclass(frozen=True)
class ChordSpec:
    root: int | str | None                  # pitch class 0-11, note name, or None
    modifiers: frozenset = field(default_factory=frozenset)
    base_octave: int = 4
    settings: VoicingSettings | None = None  # previously stored settings, if any

    def __post_init__(self):
        if not isinstance(self.modifiers, frozenset):
            object.__setattr__(self, 'modifiers', frozenset(self.modifiers))

    def stored_settings(self) -> VoicingSettings:
        """Stored settings, or defaults at this chord's base octave."""
        if self.settings is not None:
            return self.settings
        return VoicingSettings(octave=self.base_octave)


@dataclass(frozen=True)
class CloseChord:
    root: int                 # pitch class 0-11
    root_pitch: int           # MIDI pitch of the close-position root
    tones: tuple              # ascending, tones[0] is the root occurrence
    quality: str = 'major'
    modifiers: frozenset = field(default_factory=frozenset)
    intervals: tuple = ()
    octave: int = 4

    @property
    def is_minor(self) -> bool:
        return self.quality == 'minor'

    @property
    def has_dominant_seventh(self) -> bool:
        return 'dom7' in self.modifiers

    def with_tones(self, tones) -> CloseChord:
        return replace(self, tones=tuple(tones))


@dataclass(frozen=True)
class Candidate:
    settings: VoicingSettings
    notes: tuple


@dataclass
class SolveOptions:
    target_octave: int | None = None
    jazz_voice_leading: bool = True
    spread_preference: float = 0.0          # -1 (close) .. 1 (wide)
    allowed_styles: tuple | frozenset | None = None
    use_register_constraints: bool = True
    backend: str = 'dp'                     # 'dp' or 'cpsat'

    def normalized(self) -> SolveOptions:
        """
        Return a copy with spread_preference clamped to [-1, 1], allowed_styles
        coerced to VoicingStyle (empty -> None) and an unknown backend reset to 'dp'.
        """
        preference = max(-1.0, min(1.0, float(self.spread_preference or 0.0)))

        styles = None
        values = self.allowed_styles
        # A lone style name is one style, not a sequence of characters
        if isinstance(values, str):
            values = (values,)
        if values:
            # Keep the caller's order when one was given, VOICING_STYLES order otherwise
            ordered = []
            for value in values:
                style = parse_style(value)
                if style is None:
                    print(f"Warning: Unknown voicing style '{value}' ignored.")
                elif style not in ordered:
                    ordered.append(style)
            if not isinstance(values, (list, tuple)):
                ordered.sort(key=VOICING_STYLES.index)
            styles = tuple(ordered) or None

        backend = self.backend
        if backend not in ('dp', 'cpsat'):
            print(f"Warning: Unknown solver backend '{backend}', using 'dp'.")
            backend = 'dp'

        return SolveOptions(
            target_octave=self.target_octave,
            jazz_voice_leading=bool(self.jazz_voice_leading),
            spread_preference=preference,
            allowed_styles=styles,
            use_register_constraints=bool(self.use_register_constraints),
            backend=backend,
        )
