"""Verification tests for the voicing sequence solver (DP and CP-SAT backends)."""
import os
import sys
import tempfile

from chord_builder import DEFAULT_THEORY_FILE, ChordBuilder
from voicing_candidates import voice_distance
from voicing_solver import VoicingSolver, materialize_voicing, solve_sequence
from voicing_types import ChordSpec, SolveOptions, VoicingSettings, VoicingStyle

II_V_I = [
    ChordSpec('D', {'minor', 'dom7'}),
    ChordSpec('G', {'dom7'}),
    ChordSpec('C', {'maj7'}),
]


def test_empty_sequence():
    print("\n=== Test: Empty sequence ===")
    assert solve_sequence([]) == []
    assert solve_sequence(None) == []


def test_single_chord():
    print("\n=== Test: Single chord keeps its settings ===")
    assert solve_sequence([ChordSpec('C', base_octave=3)]) == [VoicingSettings(octave=3)]

    stored = VoicingSettings(inversion_index=2, spread_amount=1, octave=4)
    assert solve_sequence([ChordSpec('C', settings=stored)]) == [stored]

    result = solve_sequence([ChordSpec('C', settings=stored)], SolveOptions(target_octave=5))
    assert result == [VoicingSettings(inversion_index=2, spread_amount=1, octave=5)]


def test_length_and_order():
    print("\n=== Test: One settings per chord, same order ===")
    result = solve_sequence(II_V_I)
    for i, s in enumerate(result):
        print(f"  {i}: {s}")
    assert len(result) == len(II_V_I)
    assert all(isinstance(s, VoicingSettings) for s in result)


def test_deterministic():
    print("\n=== Test: Same input, same output ===")
    options = SolveOptions(target_octave=4, spread_preference=0.3)
    assert solve_sequence(II_V_I, options) == solve_sequence(II_V_I, options)


def test_octaves_near_target():
    print("\n=== Test: Octaves stay within one of the target ===")
    for s in solve_sequence(II_V_I, SolveOptions(target_octave=4)):
        assert s.octave in (3, 4, 5)
    for s in solve_sequence(II_V_I, SolveOptions(target_octave=7)):
        assert s.octave in (6, 7)

    low = solve_sequence(II_V_I, SolveOptions(target_octave=3))
    high = solve_sequence(II_V_I, SolveOptions(target_octave=5))
    mean_low = sum(s.octave for s in low) / len(low)
    mean_high = sum(s.octave for s in high) / len(high)
    print(f"  mean octave at target 3: {mean_low:.2f}, at target 5: {mean_high:.2f}")
    assert mean_low <= mean_high


def test_allowed_styles():
    print("\n=== Test: Allowed styles are respected ===")
    styles = ['shell', 'rootless-a', 'drop2']
    result = solve_sequence(II_V_I, SolveOptions(allowed_styles=styles))
    for s in result:
        print(f"  {s.voicing_style.value} oct {s.octave}")
        assert s.voicing_style in {VoicingStyle(name) for name in styles}


def test_allowed_styles_single_chord():
    print("\n=== Test: Allowed styles on a one-chord sequence ===")
    result = solve_sequence([ChordSpec('C', {'maj7'})], SolveOptions(allowed_styles=['shell']))
    assert result == [VoicingSettings(voicing_style=VoicingStyle.SHELL, octave=4)]

    # A stored style outside the set is replaced, the rest of the settings kept
    stored = VoicingSettings(inversion_index=1, voicing_style=VoicingStyle.DROP2, octave=3)
    result = solve_sequence([ChordSpec('C', {'maj7'}, settings=stored)],
                            SolveOptions(allowed_styles=['quartal', 'shell']))
    assert result == [VoicingSettings(inversion_index=1, voicing_style=VoicingStyle.QUARTAL,
                                      octave=3)]

    # An allowed stored style is left alone
    stored = VoicingSettings(voicing_style=VoicingStyle.SHELL)
    result = solve_sequence([ChordSpec('C', settings=stored)],
                            SolveOptions(allowed_styles=['quartal', 'shell']))
    assert result == [stored]


def test_allowed_styles_single_name():
    print("\n=== Test: A lone style name restricts to that style ===")
    options = SolveOptions(allowed_styles='shell')
    assert options.normalized().allowed_styles == (VoicingStyle.SHELL,)
    for s in solve_sequence([ChordSpec('C'), ChordSpec('F')], options):
        assert s.voicing_style == VoicingStyle.SHELL


def test_partial_tone_provider():
    print("\n=== Test: Tone provider with chords at one octave only ===")
    builder = ChordBuilder()

    def octave_four_only(root, modifiers, octave):
        if octave != 4:
            return None
        return builder.build_close_chord(root, modifiers, octave)

    solver = VoicingSolver(tone_provider=octave_four_only)
    result = solver.solve(II_V_I)
    assert [s.octave for s in result] == [4, 4, 4]
    assert solver._solve_log['fallback'] is None
    assert solver._solve_log['total_cost'] is not None


def test_solve_from_other_directory():
    print("\n=== Test: Default theory table is found from any working directory ===")
    assert os.path.isfile(DEFAULT_THEORY_FILE)
    cwd = os.getcwd()
    with tempfile.TemporaryDirectory() as tmpdir:
        os.chdir(tmpdir)
        try:
            result = solve_sequence([ChordSpec('C'), ChordSpec('F')])
            notes = materialize_voicing(ChordSpec('C'), result[0])
        finally:
            os.chdir(cwd)
    assert len(result) == 2
    assert notes


def test_smooth_c_to_f():
    print("\n=== Test: C -> F moves smoothly ===")
    specs = [ChordSpec('C'), ChordSpec('F')]
    result = solve_sequence(specs)
    notes = [materialize_voicing(spec, s) for spec, s in zip(specs, result)]
    moved = voice_distance(notes[0], notes[1])
    print(f"  {notes[0]} -> {notes[1]} (movement {moved})")
    assert moved < 20


def test_fail_soft_on_missing_root():
    print("\n=== Test: A chord with no root falls back to stored settings ===")
    stored = VoicingSettings(inversion_index=1, octave=3)
    specs = [ChordSpec('C', settings=stored), ChordSpec(None), ChordSpec('F', base_octave=5)]
    solver = VoicingSolver()
    result = solver.solve(specs)
    assert result == [stored, VoicingSettings(octave=4), VoicingSettings(octave=5)]
    assert solver._solve_log['fallback']
    assert any(level == 'ERROR' for level, _ in solver._diagnostics)


def test_materialize_matches_solve():
    print("\n=== Test: Materialized notes equal the solved path ===")
    solver = VoicingSolver()
    for options in (SolveOptions(), SolveOptions(allowed_styles=('quartal', 'upper-struct'))):
        result = solver.solve(II_V_I, options)
        for i, (spec, s) in enumerate(zip(II_V_I, result)):
            assert solver.materialize(spec, s) == solver._solve_log['path_notes'][i]


def test_materialize_no_root():
    print("\n=== Test: Materialize with no root ===")
    assert materialize_voicing(ChordSpec(None), VoicingSettings()) == []


def test_comparison_count():
    print("\n=== Test: Pairwise comparisons ===")
    solver = VoicingSolver()
    solver.solve([ChordSpec('C')])
    assert solver._solve_log['comparisons'] == 0

    solver.solve([ChordSpec('C'), ChordSpec('F')])
    counts = solver._solve_log['candidates']
    assert counts == [108, 108]
    assert solver._solve_log['comparisons'] == counts[0] * counts[1]


def test_jazz_weighting_never_costs_more():
    print("\n=== Test: Resolution weighting only lowers the optimum ===")
    solver = VoicingSolver()
    solver.solve(II_V_I, SolveOptions(jazz_voice_leading=True))
    with_jazz = solver._solve_log['total_cost']
    solver.solve(II_V_I, SolveOptions(jazz_voice_leading=False))
    without_jazz = solver._solve_log['total_cost']
    print(f"  with: {with_jazz:.2f}  without: {without_jazz:.2f}")
    assert with_jazz <= without_jazz


def test_spread_preference_direction():
    print("\n=== Test: Spread preference pushes spread the right way ===")
    tight = solve_sequence(II_V_I, SolveOptions(spread_preference=-1.0))
    wide = solve_sequence(II_V_I, SolveOptions(spread_preference=1.0))
    assert sum(s.spread_amount for s in tight) <= sum(s.spread_amount for s in wide)


def test_validate():
    print("\n=== Test: Pre-solve validation ===")
    solver = VoicingSolver()
    checks = solver.validate([ChordSpec(None), ChordSpec('C', settings=VoicingSettings())])
    for level, msg in checks:
        print(f"  [{level}] {msg}")
    levels = [level for level, _ in checks]
    assert 'ERROR' in levels
    assert 'INFO' in levels
    assert solver.validate(II_V_I) == []


def test_unknown_backend_uses_dp():
    print("\n=== Test: Unknown backend ===")
    solver = VoicingSolver()
    solver.solve(II_V_I, SolveOptions(backend='annealing'))
    assert solver._solve_log['backend'] == 'dp'


def test_cpsat_matches_dp():
    print("\n=== Test: CP-SAT backend reaches the DP optimum ===")
    options = dict(allowed_styles=tuple(VoicingStyle))
    specs = II_V_I + [ChordSpec('A', {'minor', 'dom7'})]

    dp_solver = VoicingSolver()
    dp_result = dp_solver.solve(specs, SolveOptions(**options))
    cp_solver = VoicingSolver()
    cp_result = cp_solver.solve(specs, SolveOptions(backend='cpsat', **options))

    dp_cost = dp_solver._solve_log['total_cost']
    cp_cost = cp_solver._solve_log['total_cost']
    print(f"  DP: {dp_cost:.2f}  CP-SAT: {cp_cost:.2f} "
          f"({cp_solver._solve_log.get('cpsat_status')})")
    assert cp_solver._solve_log['cpsat_status'] == 'OPTIMAL'
    assert len(cp_result) == len(dp_result)
    assert abs(dp_cost - cp_cost) < 1e-6


def test_report():
    print("\n=== Test: Diagnostic report ===")
    solver = VoicingSolver()
    assert "No solve has run yet." in solver.get_diagnostic_report()
    solver.solve(II_V_I)
    report = solver.get_diagnostic_report()
    print(report)
    assert "VOICING SOLVER REPORT" in report
    assert "Total cost" in report
    assert "Chosen voicings" in report


if __name__ == "__main__":
    tests = [
        ("Empty sequence", test_empty_sequence),
        ("Single chord", test_single_chord),
        ("Length and order", test_length_and_order),
        ("Deterministic", test_deterministic),
        ("Octaves near target", test_octaves_near_target),
        ("Allowed styles", test_allowed_styles),
        ("Allowed styles, one chord", test_allowed_styles_single_chord),
        ("Allowed styles, single name", test_allowed_styles_single_name),
        ("Partial tone provider", test_partial_tone_provider),
        ("Solve from other directory", test_solve_from_other_directory),
        ("Smooth C -> F", test_smooth_c_to_f),
        ("Fail-soft", test_fail_soft_on_missing_root),
        ("Materialize matches solve", test_materialize_matches_solve),
        ("Materialize no root", test_materialize_no_root),
        ("Comparison count", test_comparison_count),
        ("Jazz weighting", test_jazz_weighting_never_costs_more),
        ("Spread preference", test_spread_preference_direction),
        ("Validate", test_validate),
        ("Unknown backend", test_unknown_backend_uses_dp),
        ("CP-SAT matches DP", test_cpsat_matches_dp),
        ("Report", test_report),
    ]

    results = []
    for name, fn in tests:
        try:
            fn()
            results.append((name, True))
        except AssertionError as e:
            print(f"FAIL: {name}: {e}")
            results.append((name, False))

    print("\n=== Summary ===")
    for name, passed in results:
        status = "PASS" if passed else "FAIL"
        print(f"  {status}: {name}")

    if all(p for _, p in results):
        print("\nAll tests passed!")
    else:
        print("\nSome tests failed!")
        sys.exit(1)
