"""Chord theory tables (triad qualities, sevenths, extensions) read by ChordBuilder."""

from importlib import resources

THEORY_FILE = 'theory_definitions.json'


def default_theory_path():
    """Path of the bundled theory table, wherever the package is installed."""
    return str(resources.files(__name__).joinpath(THEORY_FILE))
