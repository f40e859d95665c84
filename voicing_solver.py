"""
Voicing Solver
Chooses a voicing (octave, inversion, spread, drop or jazz style) for every
chord in a sequence so that the voices move as little as possible.

The search space is a lattice: one column of candidates per chord, edges
weighted by the voice-leading distance between neighbouring candidates. The
default backend walks it with dynamic programming; the 'cpsat' backend hands
the same lattice to OR-Tools CP-SAT as a cross-check.

Nothing here raises for musical input. A chord that cannot be voiced makes
the whole solve fall back to each chord's stored (or default) settings.
"""

import math
from dataclasses import replace

from ortools.sat.python import cp_model

from chord_builder import DEFAULT_THEORY_FILE, ChordBuilder, pitch_name
from voicing_candidates import (
    build_voicing,
    generate_candidates,
    resolution_bonus,
    spread_adjustment,
    voice_distance,
)
from voicing_transforms import apply_style, register_penalty
from voicing_types import SolveOptions

# CP-SAT works on integers; costs are multiples of 0.25 under default options
CPSAT_COST_SCALE = 100
CPSAT_TIME_LIMIT = 10.0

LARGE_CANDIDATE_SPACE = 500


class VoicingSolver:
    def __init__(self, theory_file=DEFAULT_THEORY_FILE, tone_provider=None):
        if tone_provider is None:
            tone_provider = ChordBuilder(theory_file).build_close_chord
        self.tone_provider = tone_provider

        # Diagnostic tracking for the most recent solve()
        self._solve_log = {}
        self._diagnostics = []

    def _requested_octave(self, spec, options):
        if options.target_octave is not None:
            return options.target_octave
        return spec.base_octave

    def _unary_cost(self, candidate, options):
        """Per-candidate cost added before any voice-leading comparison."""
        cost = 0.0
        if options.use_register_constraints:
            cost += register_penalty(candidate.notes, candidate.settings.voicing_style)
        cost += spread_adjustment(candidate.settings.spread_amount, options.spread_preference)
        return cost

    def _transition_cost(self, prev, cand, prev_root, root, options):
        distance = voice_distance(prev.notes, cand.notes)
        if options.jazz_voice_leading:
            distance = max(0, distance - resolution_bonus(prev.notes, cand.notes, prev_root, root))
        return distance

    def _chord_root(self, spec, candidates):
        """
        Root pitch of the close chord at the first candidate's octave. That
        octave produced the candidate, so the tone provider has a chord there.
        """
        chord = self.tone_provider(spec.root, spec.modifiers, candidates[0].settings.octave)
        return chord.root_pitch

    def _fallback(self, chord_specs, reason):
        print(f"Warning: {reason} Falling back to stored voicings.")
        self._solve_log['fallback'] = reason
        return [spec.stored_settings() for spec in chord_specs]

    def _check_candidates(self, chord_specs, counts):
        results = []
        for i, (spec, count) in enumerate(zip(chord_specs, counts)):
            if count == 0:
                results.append(('ERROR',
                    f"Chord {i} (root {spec.root!r}) has no voicings; "
                    f"the solve will fall back to stored voicings"))
                continue
            if count > LARGE_CANDIDATE_SPACE:
                results.append(('WARN',
                    f"Chord {i} has {count} candidates; "
                    f"consider narrowing allowed_styles"))
            if spec.settings is not None and len(chord_specs) > 1:
                results.append(('INFO',
                    f"Chord {i} has stored settings which the solve will replace"))
        return results

    def validate(self, chord_specs, options=None):
        """
        Pre-solve checks. Returns a list of (level, message) tuples where
        level is 'ERROR', 'WARN', or 'INFO'.
        """
        options = (options or SolveOptions()).normalized()
        chord_specs = list(chord_specs or [])
        counts = [
            len(generate_candidates(spec, self.tone_provider,
                                    self._requested_octave(spec, options),
                                    options.allowed_styles))
            for spec in chord_specs
        ]
        return self._check_candidates(chord_specs, counts)

    def solve(self, chord_specs, options=None):
        """
        Return one VoicingSettings per chord spec (same length, same order).
        """
        options = (options or SolveOptions()).normalized()
        chord_specs = list(chord_specs or [])
        self._solve_log = {
            'chords': len(chord_specs),
            'backend': options.backend,
            'candidates': [],
            'comparisons': 0,
            'total_cost': None,
            'fallback': None,
            'path_notes': [],
        }
        self._diagnostics = []

        if not chord_specs:
            return []

        if len(chord_specs) == 1:
            settings = chord_specs[0].stored_settings()
            if options.allowed_styles and settings.voicing_style not in options.allowed_styles:
                settings = replace(settings, voicing_style=options.allowed_styles[0])
            if options.target_octave is not None:
                settings = replace(settings, octave=options.target_octave)
            return [settings]

        all_candidates = [
            generate_candidates(spec, self.tone_provider,
                                self._requested_octave(spec, options),
                                options.allowed_styles)
            for spec in chord_specs
        ]
        self._solve_log['candidates'] = [len(c) for c in all_candidates]

        self._diagnostics = self._check_candidates(chord_specs, self._solve_log['candidates'])
        for level, msg in self._diagnostics:
            if level in ('ERROR', 'WARN'):
                print(f"[{level}] {msg}")

        for i, candidates in enumerate(all_candidates):
            if not candidates:
                return self._fallback(chord_specs, f"Chord {i} has no valid voicings.")

        roots = [self._chord_root(spec, cands)
                 for spec, cands in zip(chord_specs, all_candidates)]
        unary = [[self._unary_cost(c, options) for c in cands] for cands in all_candidates]

        path, total = self._solve_dp(all_candidates, roots, unary, options)
        if options.backend == 'cpsat':
            cpsat_result = self._solve_cpsat(all_candidates, roots, unary, options)
            if cpsat_result is None:
                print("Warning: CP-SAT did not prove an optimum; using the DP result.")
                self._solve_log['fallback'] = 'cpsat-not-optimal'
            else:
                path, total = cpsat_result

        self._solve_log['total_cost'] = total
        chosen = [all_candidates[i][j] for i, j in enumerate(path)]
        self._solve_log['path_notes'] = [list(c.notes) for c in chosen]
        return [c.settings for c in chosen]

    def _solve_dp(self, all_candidates, roots, unary, options):
        """
        cost[i][j]: cheapest total to reach candidate j of chord i.
        Ties keep the first enumerated predecessor/ending.
        """
        n = len(all_candidates)
        cost = [list(unary[0])]
        parent = [[-1] * len(all_candidates[0])]

        for i in range(1, n):
            row = []
            back = []
            for j, cand in enumerate(all_candidates[i]):
                best = math.inf
                best_k = 0
                for k, prev in enumerate(all_candidates[i - 1]):
                    total = cost[i - 1][k] + self._transition_cost(
                        prev, cand, roots[i - 1], roots[i], options)
                    self._solve_log['comparisons'] += 1
                    if total < best:
                        best = total
                        best_k = k
                row.append(best + unary[i][j])
                back.append(best_k)
            cost.append(row)
            parent.append(back)

        best_end = 0
        for j in range(1, len(cost[-1])):
            if cost[-1][j] < cost[-1][best_end]:
                best_end = j

        path = [0] * n
        path[-1] = best_end
        for i in range(n - 1, 0, -1):
            path[i - 1] = parent[i][path[i]]
        return path, cost[-1][best_end]

    def _solve_cpsat(self, all_candidates, roots, unary, options):
        """
        Same lattice as _solve_dp, as a CP-SAT model: one choice variable per
        chord, one table constraint per transition tying the pair of choices
        to its scaled cost. Returns (path, cost) or None if not optimal.
        """
        model = cp_model.CpModel()
        solver = cp_model.CpSolver()
        solver.parameters.num_workers = 1
        solver.parameters.random_seed = 0
        solver.parameters.max_time_in_seconds = CPSAT_TIME_LIMIT

        def scaled(value):
            return int(round(value * CPSAT_COST_SCALE))

        choices = [model.NewIntVar(0, len(cands) - 1, f'choice_{i}')
                   for i, cands in enumerate(all_candidates)]

        first = [(j, scaled(u)) for j, u in enumerate(unary[0])]
        first_cost = model.NewIntVar(min(c for _, c in first), max(c for _, c in first),
                                     'cost_0')
        model.AddAllowedAssignments([choices[0], first_cost], first)
        step_costs = [first_cost]

        for i in range(1, len(all_candidates)):
            table = []
            for k, prev in enumerate(all_candidates[i - 1]):
                for j, cand in enumerate(all_candidates[i]):
                    edge = self._transition_cost(prev, cand, roots[i - 1], roots[i], options)
                    table.append((k, j, scaled(edge + unary[i][j])))
            step = model.NewIntVar(min(t[2] for t in table), max(t[2] for t in table),
                                   f'cost_{i}')
            model.AddAllowedAssignments([choices[i - 1], choices[i], step], table)
            step_costs.append(step)

        model.Minimize(sum(step_costs))
        status = solver.Solve(model)
        self._solve_log['cpsat_status'] = solver.status_name(status)
        self._solve_log['cpsat_wall_time'] = solver.wall_time

        if status != cp_model.OPTIMAL:
            return None

        path = [solver.Value(v) for v in choices]
        total = unary[0][path[0]]
        for i in range(1, len(path)):
            prev = all_candidates[i - 1][path[i - 1]]
            cand = all_candidates[i][path[i]]
            total += self._transition_cost(prev, cand, roots[i - 1], roots[i], options)
            total += unary[i][path[i]]
        return path, total

    def materialize(self, spec, settings):
        """Notes for a chord spec under stored settings, exactly as the solve saw them."""
        chord = self.tone_provider(spec.root, spec.modifiers, settings.octave)
        return build_voicing(chord, settings)

    def get_diagnostic_report(self):
        """Human-readable summary of the last solve()."""
        log = self._solve_log
        lines = []
        lines.append("=" * 60)
        lines.append("VOICING SOLVER REPORT")
        lines.append("=" * 60)

        if not log:
            lines.append("")
            lines.append("No solve has run yet.")
            lines.append("=" * 60)
            return "\n".join(lines)

        lines.append("")
        lines.append(f"Chords: {log['chords']}")
        lines.append(f"Backend: {log['backend']}")
        if log['candidates']:
            lines.append(f"Candidates per chord: {log['candidates']}")
        lines.append(f"Pairwise comparisons: {log['comparisons']}")
        if log.get('cpsat_status'):
            lines.append(f"CP-SAT status: {log['cpsat_status']} "
                         f"({log['cpsat_wall_time']:.3f}s)")
        if log['total_cost'] is not None:
            lines.append(f"Total cost: {log['total_cost']:.2f}")
        if log['fallback']:
            lines.append(f"Fallback: {log['fallback']}")

        if self._diagnostics:
            lines.append("")
            lines.append("Pre-solve checks:")
            for level, msg in self._diagnostics:
                lines.append(f"  [{level}] {msg}")

        if log['path_notes']:
            lines.append("")
            lines.append("Chosen voicings:")
            for i, notes in enumerate(log['path_notes']):
                names = ' '.join(pitch_name(m) for m in notes)
                lines.append(f"  {i}: {notes} ({names})")

        lines.append("=" * 60)
        return "\n".join(lines)


def solve_sequence(chord_specs, options=None, tone_provider=None):
    """Solve a chord sequence with a fresh solver. Never raises for musical input."""
    return VoicingSolver(tone_provider=tone_provider).solve(chord_specs, options)


def materialize_voicing(chord_spec, settings, tone_provider=None):
    """Render the notes for stored settings (preview / playback)."""
    return VoicingSolver(tone_provider=tone_provider).materialize(chord_spec, settings)


__all__ = [
    'VoicingSolver',
    'apply_style',
    'materialize_voicing',
    'solve_sequence',
]
