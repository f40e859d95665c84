"""Verification tests for progression parsing, settings storage and MusicXML export."""
import json
import os
import sys
import tempfile

from chord_voicer import ChordVoicer, MusicXMLExporter, ProgressionParser
from voicing_types import SolveOptions, VoicingSettings, VoicingStyle

PROGRESSION = {
    "chords": [
        {"root": "D", "modifiers": ["minor", "dom7"], "octave": 4},
        {"root": "G", "modifiers": ["dom7"], "octave": 4},
        {"root": "C", "modifiers": "maj7", "octave": 4,
         "settings": {"inversionIndex": 1, "voicingStyle": "shell"}},
    ]
}


def _write_json(tmpdir, name, data):
    path = os.path.join(tmpdir, name)
    with open(path, 'w') as f:
        json.dump(data, f)
    return path


def test_parse_progression():
    print("\n=== Test: Parse progression JSON ===")
    with tempfile.TemporaryDirectory() as tmpdir:
        path = _write_json(tmpdir, 'prog.json', PROGRESSION)
        specs = ProgressionParser().parse(path)

    assert len(specs) == 3
    assert specs[0].root == 'D'
    assert specs[0].modifiers == frozenset({'minor', 'dom7'})
    assert specs[2].modifiers == frozenset({'maj7'})
    assert specs[2].settings == VoicingSettings(inversion_index=1,
                                                voicing_style=VoicingStyle.SHELL,
                                                octave=4)


def test_parse_bare_list():
    print("\n=== Test: Parse a bare list ===")
    with tempfile.TemporaryDirectory() as tmpdir:
        path = _write_json(tmpdir, 'prog.json', [{"root": 5}, {"root": None}])
        specs = ProgressionParser().parse(path)
    assert [s.root for s in specs] == [5, None]
    assert specs[0].base_octave == 4


def test_parse_rejects_bad_entries():
    print("\n=== Test: Malformed progression raises ValueError ===")
    with tempfile.TemporaryDirectory() as tmpdir:
        path = _write_json(tmpdir, 'bad.json', {"chords": ["Dm7"]})
        try:
            ProgressionParser().parse(path)
        except ValueError as e:
            print(f"  Raised: {e}")
        else:
            raise AssertionError("expected ValueError")


def test_settings_dict_fields():
    print("\n=== Test: Stored settings field names ===")
    settings = VoicingSettings(inversion_index=2, spread_amount=1, dropped_notes=1,
                               voicing_style=VoicingStyle.DROP24, octave=3)
    data = settings.to_dict()
    assert data == {
        'inversionIndex': 2,
        'spreadAmount': 1,
        'droppedNotes': 1,
        'voicingStyle': 'drop24',
        'octave': 3,
    }
    assert VoicingSettings.from_dict(data) == settings
    # Unknown styles come back as close
    assert VoicingSettings.from_dict({'voicingStyle': 'cluster'}).voicing_style == VoicingStyle.CLOSE
    # A null octave takes the default, octave 0 stays 0
    assert VoicingSettings.from_dict({'octave': None}, default_octave=5).octave == 5
    assert VoicingSettings.from_dict({'octave': 0}, default_octave=5).octave == 0


def test_musicxml_export():
    print("\n=== Test: MusicXML export ===")
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, 'out.musicxml')
        MusicXMLExporter().export([[60, 64, 67], [], [65, 69, 72]], path,
                                  labels=['C', None, 'F'])
        assert os.path.exists(path)
        with open(path) as f:
            xml = f.read()
    assert '<score-partwise' in xml
    assert '<rest' in xml


def test_full_pipeline():
    print("\n=== Test: Parse -> solve -> export ===")
    with tempfile.TemporaryDirectory() as tmpdir:
        prog = _write_json(tmpdir, 'prog.json', PROGRESSION)
        out = os.path.join(tmpdir, 'out.musicxml')
        settings_out = os.path.join(tmpdir, 'settings.json')

        result = ChordVoicer().voice(prog, output_path=out,
                                     options=SolveOptions(target_octave=4),
                                     settings_path=settings_out)

        assert len(result) == 3
        assert os.path.exists(out)
        with open(settings_out) as f:
            stored = json.load(f)
    assert [VoicingSettings.from_dict(d) for d in stored] == result


if __name__ == "__main__":
    tests = [
        ("Parse progression", test_parse_progression),
        ("Parse bare list", test_parse_bare_list),
        ("Malformed progression", test_parse_rejects_bad_entries),
        ("Settings fields", test_settings_dict_fields),
        ("MusicXML export", test_musicxml_export),
        ("Full pipeline", test_full_pipeline),
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
