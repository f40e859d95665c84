"""Verification tests for candidate generation and the voice-leading metric."""
import math
import sys

from chord_builder import ChordBuilder
from voicing_candidates import (
    RESOLUTION_BONUS,
    UNMATCHED_VOICE_PENALTY,
    build_voicing,
    candidate_octaves,
    generate_candidates,
    resolution_bonus,
    spread_adjustment,
    voice_distance,
)
from voicing_types import ChordSpec, VoicingSettings, VoicingStyle


def _provider():
    return ChordBuilder().build_close_chord


def test_candidate_octaves():
    print("\n=== Test: Candidate octaves ===")
    assert candidate_octaves(4) == [3, 4, 5]
    assert candidate_octaves(1) == [1, 2]
    assert candidate_octaves(7) == [6, 7]
    # Out-of-range requests clamp and never repeat an octave
    assert candidate_octaves(0) == [1]
    assert candidate_octaves(9) == [7]


def test_candidate_counts():
    print("\n=== Test: Candidate counts (inversion x spread x drop x octave) ===")
    provider = _provider()
    triad = generate_candidates(ChordSpec('C'), provider, 4)
    seventh = generate_candidates(ChordSpec('C', {'dom7'}), provider, 4)
    print(f"  triad: {len(triad)}, seventh: {len(seventh)}")
    assert len(triad) == 3 * 3 * 4 * 3
    assert len(seventh) == 3 * 4 * 4 * 4
    assert {c.settings.octave for c in triad} == {3, 4, 5}
    assert all(c.settings.voicing_style == VoicingStyle.CLOSE for c in triad)


def test_candidate_notes_ascending_in_range():
    print("\n=== Test: Candidate notes are ascending MIDI pitches ===")
    for cand in generate_candidates(ChordSpec('G', {'dom7', '9'}), _provider(), 6):
        notes = list(cand.notes)
        assert notes == sorted(notes)
        assert all(0 <= n <= 127 for n in notes)


def test_style_candidates():
    print("\n=== Test: Candidates restricted to styles ===")
    styles = (VoicingStyle.SHELL, VoicingStyle.DROP2)
    cands = generate_candidates(ChordSpec('C', {'maj7'}), _provider(), 4, styles)
    assert len(cands) == len(styles) * 3
    assert {c.settings.voicing_style for c in cands} == set(styles)
    shell_4 = [c for c in cands
               if c.settings.voicing_style == VoicingStyle.SHELL and c.settings.octave == 4]
    assert list(shell_4[0].notes) == [60, 64, 71]


def test_no_chord_no_candidates():
    print("\n=== Test: No root -> no candidates ===")
    assert generate_candidates(ChordSpec(None), _provider(), 4) == []


def test_build_voicing():
    print("\n=== Test: build_voicing ===")
    builder = ChordBuilder()
    c = builder.build_close_chord('C', (), 4)
    assert build_voicing(c, VoicingSettings()) == [60, 64, 67]
    assert build_voicing(c, VoicingSettings(inversion_index=1)) == [64, 67, 72]
    assert build_voicing(c, VoicingSettings(spread_amount=1)) == [60, 67, 76]
    cmaj7 = builder.build_close_chord('C', {'maj7'}, 4)
    assert build_voicing(cmaj7, VoicingSettings(voicing_style=VoicingStyle.SHELL)) == [60, 64, 71]
    assert build_voicing(None, VoicingSettings()) == []


def test_voice_distance():
    print("\n=== Test: Voice distance ===")
    assert voice_distance([60, 64, 67], [60, 64, 67]) == 0
    assert voice_distance([60, 64, 67], [60, 65, 69]) == 3
    # Order of the input lists does not matter
    assert voice_distance([67, 60, 64], [69, 65, 60]) == 3
    assert voice_distance([60, 64, 67, 70], [60, 64, 67]) == UNMATCHED_VOICE_PENALTY
    assert voice_distance([], [60]) == math.inf
    assert voice_distance([60], []) == math.inf


def test_resolution_bonus():
    print("\n=== Test: 7th -> 3rd resolution bonus (Dm7 -> G7) ===")
    # C (7th of D) -> B (3rd of G), F (3rd of D) -> F (7th of G)
    assert resolution_bonus([65, 72], [65, 71], 62, 67) == 2 * RESOLUTION_BONUS
    # Same pitch classes but too far apart
    assert resolution_bonus([72], [83], 62, 67) == 0
    # Root motion only
    assert resolution_bonus([62], [67], 62, 67) == 0


def test_spread_adjustment():
    print("\n=== Test: Spread preference ===")
    assert spread_adjustment(2, 0.0) == 0.0
    assert spread_adjustment(2, 0.5) == -6.0
    assert spread_adjustment(1, -1.0) == 6.0
    assert spread_adjustment(0, 1.0) == 0.0


if __name__ == "__main__":
    tests = [
        ("Candidate octaves", test_candidate_octaves),
        ("Candidate counts", test_candidate_counts),
        ("Ascending notes", test_candidate_notes_ascending_in_range),
        ("Style candidates", test_style_candidates),
        ("No chord", test_no_chord_no_candidates),
        ("build_voicing", test_build_voicing),
        ("Voice distance", test_voice_distance),
        ("Resolution bonus", test_resolution_bonus),
        ("Spread adjustment", test_spread_adjustment),
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
