"""Verification tests for close-chord construction, inversion and note names."""
import sys

from chord_builder import ChordBuilder, inversion_count, invert_chord, pitch_name


def test_basic_qualities():
    print("\n=== Test: Triad and seventh qualities ===")
    builder = ChordBuilder()

    c7 = builder.build_close_chord('C', ['dom7'], 4)
    print(f"  C7: {c7.tones}")
    assert c7.root == 0
    assert c7.root_pitch == 60
    assert c7.tones == (60, 64, 67, 70)
    assert c7.has_dominant_seventh

    dm7 = builder.build_close_chord('D', {'minor', 'dom7'}, 4)
    print(f"  Dm7: {dm7.tones}")
    assert dm7.tones == (62, 65, 69, 72)
    assert dm7.is_minor

    cmaj7 = builder.build_close_chord('C', ['maj7'], 3)
    assert cmaj7.tones == (48, 52, 55, 59)


def test_diminished_seventh_and_sixth():
    print("\n=== Test: Diminished 7th, sixth, flat 5 ===")
    builder = ChordBuilder()
    assert builder.build_close_chord(0, {'diminished', 'dom7'}, 4).intervals == (0, 3, 6, 9)
    assert builder.build_close_chord(0, {'6'}, 4).intervals == (0, 4, 7, 9)
    # A sixth is ignored once a seventh is present
    assert builder.build_close_chord(0, {'6', 'dom7'}, 4).intervals == (0, 4, 7, 10)
    assert builder.build_close_chord(0, {'flat5', 'dom7'}, 4).intervals == (0, 4, 6, 10)


def test_extensions():
    print("\n=== Test: Extensions ===")
    builder = ChordBuilder()
    c9 = builder.build_close_chord('C', {'dom7', '9'}, 4)
    assert c9.tones == (60, 64, 67, 70, 74)
    c7b9 = builder.build_close_chord('C', {'dom7', 'flat9'}, 4)
    assert 73 in c7b9.tones


def test_root_names():
    print("\n=== Test: Root spellings ===")
    builder = ChordBuilder()
    assert builder.build_close_chord('Bb', (), 4).root == 10
    assert builder.build_close_chord('B-', (), 4).root == 10
    assert builder.build_close_chord('F#', (), 4).root == 6
    assert builder.build_close_chord(7, (), 4).root_pitch == 67
    assert builder.build_close_chord(19, (), 4).root == 7


def test_no_root():
    print("\n=== Test: Missing or unreadable root ===")
    builder = ChordBuilder()
    assert builder.build_close_chord(None, {'dom7'}, 4) is None
    assert builder.build_close_chord('', (), 4) is None
    assert builder.build_close_chord('Q', (), 4) is None


def test_unknown_modifier_ignored():
    print("\n=== Test: Unknown modifiers ===")
    builder = ChordBuilder()
    chord = builder.build_close_chord('C', {'dom7', 'lydian-ish'}, 4)
    assert chord is not None
    assert chord.tones == (60, 64, 67, 70)


def test_invert_chord():
    print("\n=== Test: Inversions ===")
    assert invert_chord([60, 64, 67], 0) == [60, 64, 67]
    assert invert_chord([60, 64, 67], 1) == [64, 67, 72]
    assert invert_chord([60, 64, 67], 2) == [67, 72, 76]
    # Wraps at the tone count
    assert invert_chord([60, 64, 67], 3) == [60, 64, 67]
    assert invert_chord([], 2) == []
    assert inversion_count([60, 64, 67, 70]) == 4


def test_pitch_name():
    print("\n=== Test: Pitch names ===")
    assert pitch_name(60) == 'C4'
    assert pitch_name(69) == 'A4'
    assert pitch_name(48) == 'C3'


if __name__ == "__main__":
    tests = [
        ("Qualities", test_basic_qualities),
        ("Dim7 / sixth / flat5", test_diminished_seventh_and_sixth),
        ("Extensions", test_extensions),
        ("Root names", test_root_names),
        ("No root", test_no_root),
        ("Unknown modifier", test_unknown_modifier_ignored),
        ("Inversions", test_invert_chord),
        ("Pitch names", test_pitch_name),
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
