"""
Chord Voicer
Reads a chord progression (JSON), solves voicings for the whole sequence so
the voices move smoothly, prints the result and optionally writes MusicXML
and the chosen settings for the preset layer.
"""

import json

import music21

from chord_builder import DEFAULT_THEORY_FILE, pitch_name
from voicing_solver import VoicingSolver
from voicing_types import VOICING_STYLE_LABELS, ChordSpec, SolveOptions, VoicingSettings


class ProgressionParser:
    """Parses a JSON progression file into ChordSpecs."""

    def parse(self, filepath: str) -> list[ChordSpec]:
        """
        Accepts either {"chords": [...]} or a bare list. Each chord entry:
          {"root": "D", "modifiers": ["minor", "dom7"], "octave": 4,
           "settings": {"inversionIndex": 1, ...}}   (settings optional)
        Raises ValueError for entries that are not objects.
        """
        with open(filepath, 'r') as f:
            data = json.load(f)

        entries = data.get('chords', []) if isinstance(data, dict) else data
        if not isinstance(entries, list):
            raise ValueError(f"Progression in {filepath} must be a list of chords")

        specs = []
        for i, entry in enumerate(entries):
            if not isinstance(entry, dict):
                raise ValueError(f"Chord {i} in {filepath} is not an object: {entry!r}")

            modifiers = entry.get('modifiers', [])
            if isinstance(modifiers, str):
                modifiers = [modifiers]
            octave = int(entry.get('octave', 4))

            settings = None
            if entry.get('settings') is not None:
                settings = VoicingSettings.from_dict(entry['settings'], default_octave=octave)

            specs.append(ChordSpec(
                root=entry.get('root'),
                modifiers=frozenset(modifiers),
                base_octave=octave,
                settings=settings,
            ))
        return specs


class MusicXMLExporter:
    """Writes a voiced progression as block chords with music21."""

    def export(
        self,
        voicings: list[list[int]],
        filepath: str,
        durations: list[float] | None = None,
        labels: list[str] | None = None,
    ):
        """
        Args:
            voicings: one list of MIDI notes per chord (empty -> rest)
            filepath: output path (.musicxml)
            durations: quarterLength per chord (default: a whole note each)
            labels: optional text placed above each chord
        """
        if durations is None:
            durations = [4.0] * len(voicings)

        score = music21.stream.Score()
        part = music21.stream.Part()
        part.partName = 'Piano'

        for i, (notes, dur) in enumerate(zip(voicings, durations)):
            if notes:
                element = music21.chord.Chord(sorted(notes))
            else:
                element = music21.note.Rest()
            element.quarterLength = dur
            if labels and i < len(labels) and labels[i]:
                element.addLyric(labels[i])
            part.append(element)

        part.makeMeasures(inPlace=True)
        score.append(part)
        score.write('musicxml', fp=filepath)
        return filepath


class ChordVoicer:
    """Top-level orchestrator tying parser, solver, and exporter together."""

    def __init__(self, theory_file: str = DEFAULT_THEORY_FILE):
        self.parser = ProgressionParser()
        self.solver = VoicingSolver(theory_file=theory_file)
        self.exporter = MusicXMLExporter()

    def voice(
        self,
        progression_path: str,
        output_path: str | None = None,
        options: SolveOptions | None = None,
        settings_path: str | None = None,
    ) -> list[VoicingSettings]:
        """
        Full pipeline: parse progression -> solve -> print -> export.

        Args:
            progression_path: JSON progression file
            output_path: where to write MusicXML (skipped when None)
            options: solver options
            settings_path: where to write the chosen settings as JSON

        Returns:
            One VoicingSettings per chord.
        """
        # 1. Parse
        specs = self.parser.parse(progression_path)
        print(f"Parsed {len(specs)} chords from {progression_path}")

        # 2. Solve
        print("Solving...")
        settings = self.solver.solve(specs, options)

        # 3. Render and report
        voicings = [self.solver.materialize(spec, s) for spec, s in zip(specs, settings)]
        labels = []
        for i, (spec, s, notes) in enumerate(zip(specs, settings, voicings)):
            label = VOICING_STYLE_LABELS[s.voicing_style]
            labels.append(label)
            names = [pitch_name(m) for m in notes]
            print(f"  {i}: {spec.root} {sorted(spec.modifiers)} -> {label}, "
                  f"inv {s.inversion_index}, spread {s.spread_amount}, "
                  f"drop {s.dropped_notes}, oct {s.octave}: {names}")

        # 4. Export
        if settings_path:
            with open(settings_path, 'w') as f:
                json.dump([s.to_dict() for s in settings], f, indent=2)
            print(f"Settings written to {settings_path}")

        if output_path:
            self.exporter.export(voicings, output_path, labels=labels)
            print(f"Written to {output_path}")

        return settings


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------
if __name__ == '__main__':
    import argparse

    parser = argparse.ArgumentParser(description='Chord Voicer')
    parser.add_argument('progression', help='Path to a JSON chord progression')
    parser.add_argument('-o', '--output', default=None,
                        help='Output MusicXML path (default: none)')
    parser.add_argument('-s', '--settings-out', default=None,
                        help='Write chosen voicing settings as JSON')
    parser.add_argument('-t', '--target-octave', type=int, default=None,
                        help='Centre every chord on this octave')
    parser.add_argument('--styles', nargs='+', default=None,
                        help='Restrict to these voicing styles (e.g. shell rootless-a)')
    parser.add_argument('--spread', type=float, default=0.0,
                        help='Spread preference, -1 (close) to 1 (wide)')
    parser.add_argument('--no-jazz', action='store_true',
                        help='Disable 7th->3rd resolution weighting')
    parser.add_argument('--no-register', action='store_true',
                        help='Disable per-style register penalties')
    parser.add_argument('--backend', choices=['dp', 'cpsat'], default='dp',
                        help='Search backend (default: dp)')
    parser.add_argument('--report', action='store_true',
                        help='Print the solver diagnostic report')
    parser.add_argument('--theory', default=DEFAULT_THEORY_FILE,
                        help='Path to theory definitions JSON')
    args = parser.parse_args()

    options = SolveOptions(
        target_octave=args.target_octave,
        jazz_voice_leading=not args.no_jazz,
        spread_preference=args.spread,
        allowed_styles=tuple(args.styles) if args.styles else None,
        use_register_constraints=not args.no_register,
        backend=args.backend,
    )

    voicer = ChordVoicer(theory_file=args.theory)
    voicer.voice(
        args.progression,
        output_path=args.output,
        options=options,
        settings_path=args.settings_out,
    )
    if args.report:
        print(voicer.solver.get_diagnostic_report())
