"""Verification tests for the voicing style transforms and register helpers."""
import sys

from voicing_transforms import (
    REGISTER_CONSTRAINTS,
    apply_drop2,
    apply_drop3,
    apply_drop24,
    apply_progressive_drop,
    apply_quartal,
    apply_rootless_a,
    apply_rootless_b,
    apply_shell,
    apply_spread,
    apply_style,
    apply_upper_structure,
    constrain_to_register,
    cycle_voicing_style,
    register_penalty,
)
from voicing_types import VOICING_STYLES, CloseChord, VoicingStyle

CMAJ7 = CloseChord(root=0, root_pitch=60, tones=(60, 64, 67, 71),
                   modifiers=frozenset({'maj7'}))
C7 = CloseChord(root=0, root_pitch=60, tones=(60, 64, 67, 70),
                modifiers=frozenset({'dom7'}))
CMIN = CloseChord(root=0, root_pitch=60, tones=(60, 63, 67), quality='minor',
                  modifiers=frozenset({'minor'}))
CMAJ = CloseChord(root=0, root_pitch=60, tones=(60, 64, 67))


def test_rootless_a():
    print("\n=== Test: Rootless A on Cmaj7 ===")
    result = apply_rootless_a(CMAJ7)
    print(f"  {CMAJ7.tones} -> {result}")
    # E G B + synthesized D, no root
    assert result == [64, 67, 71, 74]
    assert 60 not in result


def test_rootless_b():
    print("\n=== Test: Rootless B on Cmaj7 ===")
    result = apply_rootless_b(CMAJ7)
    print(f"  {CMAJ7.tones} -> {result}")
    # 7th dropped under the 3rd
    assert result == [59, 64, 67, 74]
    assert result[0] % 12 == 11


def test_shell():
    print("\n=== Test: Shell on Cmaj7 ===")
    result = apply_shell(CMAJ7)
    print(f"  {CMAJ7.tones} -> {result}")
    assert result == [60, 64, 71]


def test_shell_uses_sixth_without_seventh():
    print("\n=== Test: Shell on C6 ===")
    c6 = CloseChord(root=0, root_pitch=60, tones=(60, 64, 67, 69),
                    modifiers=frozenset({'6'}))
    assert apply_shell(c6) == [60, 64, 69]


def test_drop_voicings():
    print("\n=== Test: Drop 2 / Drop 3 / Drop 2+4 on Cmaj7 ===")
    assert apply_drop2(CMAJ7) == [55, 60, 64, 71]
    assert apply_drop3(CMAJ7) == [52, 60, 67, 71]
    assert apply_drop24(CMAJ7) == [48, 55, 64, 71]
    print("  PASS")


def test_drop_needs_four_tones():
    print("\n=== Test: Drop voicings leave triads alone ===")
    for fn in (apply_drop2, apply_drop3, apply_drop24):
        assert fn(CMAJ) == [60, 64, 67]


def test_quartal():
    print("\n=== Test: Quartal ===")
    # So What voicing from the minor 3rd
    assert apply_quartal(CMIN) == [63, 68, 73, 78, 82]
    # Fourths from the 7th on a dominant
    assert apply_quartal(C7) == [70, 75, 80, 85]
    assert apply_quartal(CMAJ) == [60, 65, 70, 75, 79]


def test_upper_structure():
    print("\n=== Test: Upper structure on C7 ===")
    result = apply_upper_structure(C7)
    print(f"  {C7.tones} -> {result}")
    # E + Bb under Eb G Bb, shared Bb merged
    assert result == [63, 64, 67, 70]


def test_upper_structure_falls_back():
    print("\n=== Test: Upper structure needs a major 3rd ===")
    # Minor triad: no major 3rd, no 7th -> only the triad, not enough tones
    assert apply_upper_structure(CMIN) == [60, 63, 67]


def test_apply_style_every_style():
    print("\n=== Test: Every style gives an ascending in-range voicing ===")
    for style in VOICING_STYLES:
        result = apply_style(style, C7)
        print(f"  {style.value}: {result}")
        assert result
        assert result == sorted(result)
        assert all(0 <= n <= 127 for n in result)


def test_apply_style_accepts_names_and_empty():
    print("\n=== Test: apply_style with string names and empty chords ===")
    assert apply_style('shell', CMAJ7) == [60, 64, 71]
    assert apply_style(VoicingStyle.CLOSE, CMAJ7) == [60, 64, 67, 71]
    assert apply_style('drop2', CMAJ7.with_tones(())) == []


def test_clamping_near_top():
    print("\n=== Test: Transforms clamp into MIDI range ===")
    high = CloseChord(root=0, root_pitch=120, tones=(120, 124, 127),
                      modifiers=frozenset({'dom7'}))
    for style in VOICING_STYLES:
        assert all(0 <= n <= 127 for n in apply_style(style, high))


def test_cycle_voicing_style():
    print("\n=== Test: Cycling styles ===")
    styles = [VoicingStyle.CLOSE, VoicingStyle.SHELL, VoicingStyle.DROP2]
    assert cycle_voicing_style(VoicingStyle.CLOSE, styles) == VoicingStyle.SHELL
    assert cycle_voicing_style(VoicingStyle.DROP2, styles) == VoicingStyle.CLOSE
    assert cycle_voicing_style(VoicingStyle.QUARTAL, styles) == VoicingStyle.CLOSE
    assert cycle_voicing_style(VoicingStyle.QUARTAL, []) == VoicingStyle.QUARTAL


def test_progressive_drop():
    print("\n=== Test: Progressive drop ===")
    assert apply_progressive_drop([60, 64, 67, 72], 0) == [60, 64, 67, 72]
    assert apply_progressive_drop([60, 64, 67, 72], 1) == [60, 60, 64, 67]
    assert apply_progressive_drop([60, 64, 67, 72], 2) == [55, 60, 60, 64]
    # The lowest tone never drops, however many drops are asked for
    assert apply_progressive_drop([60, 64, 67], 9) == [52, 55, 60]


def test_spread():
    print("\n=== Test: Spread ===")
    assert apply_spread([60, 64, 67, 72], 0) == [60, 64, 67, 72]
    assert apply_spread([60, 64, 67, 72], 1) == [60, 67, 76, 84]
    assert apply_spread([60, 64, 67], 2) == [60, 67, 88]
    assert apply_spread([60], 3) == [60]


def test_register_penalty():
    print("\n=== Test: Register penalty ===")
    assert register_penalty([], VoicingStyle.CLOSE) == 0.0
    # In range, centre 63.5 vs ideal 60
    assert register_penalty([60, 64, 67], VoicingStyle.CLOSE) == 1.75
    # Rootless range tops out at 79: 5 semitones over
    bounds = REGISTER_CONSTRAINTS[VoicingStyle.ROOTLESS_A]
    penalty = register_penalty([72, 76, 79, 84], VoicingStyle.ROOTLESS_A)
    center = (72 + 84) / 2
    assert penalty == (84 - bounds.max) * 3 + abs(center - bounds.ideal) * 0.5


def test_constrain_to_register():
    print("\n=== Test: Constrain to register ===")
    # Too low -> up an octave
    assert constrain_to_register([24, 28, 31], VoicingStyle.CLOSE) == [36, 40, 43]
    # Too high -> down an octave
    assert constrain_to_register([100, 104, 107], VoicingStyle.CLOSE) == [88, 92, 95]
    # In range but far from the ideal -> re-centred
    assert constrain_to_register([60, 64, 71], VoicingStyle.SHELL) == [48, 52, 59]
    # Wider than the register -> untouched
    assert constrain_to_register([40, 80], VoicingStyle.ROOTLESS_A) == [40, 80]
    assert constrain_to_register([], VoicingStyle.CLOSE) == []


if __name__ == "__main__":
    tests = [
        ("Rootless A", test_rootless_a),
        ("Rootless B", test_rootless_b),
        ("Shell", test_shell),
        ("Shell with sixth", test_shell_uses_sixth_without_seventh),
        ("Drop voicings", test_drop_voicings),
        ("Drop needs four tones", test_drop_needs_four_tones),
        ("Quartal", test_quartal),
        ("Upper structure", test_upper_structure),
        ("Upper structure fallback", test_upper_structure_falls_back),
        ("Every style", test_apply_style_every_style),
        ("apply_style names / empty", test_apply_style_accepts_names_and_empty),
        ("Clamping", test_clamping_near_top),
        ("Cycle styles", test_cycle_voicing_style),
        ("Progressive drop", test_progressive_drop),
        ("Spread", test_spread),
        ("Register penalty", test_register_penalty),
        ("Constrain to register", test_constrain_to_register),
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
