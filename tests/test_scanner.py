"""Tests for the directory scanner."""

import asyncio
import logging
import os

import pytest

from shuffle.exceptions import ScanError
from shuffle.filesystem import LocalDirectoryLister
from shuffle.scanner import DirectoryScanner
from shuffle.track import Track


def scan(lister, root, **kwargs):
    scanner = DirectoryScanner(lister, **kwargs)
    return scanner, asyncio.run(scanner.scan(root))


class TestDirectoryScanner:
    """Test DirectoryScanner class."""

    def test_music_folder_scenario(self, music_tree):
        """Only a.mp3 and sub/b.flac are tracks; c.txt is excluded."""
        _, tracks = scan(music_tree, '/music')
        assert [t.path for t in tracks] == ['/music/a.mp3', '/music/sub/b.flac']

    def test_extension_filter_is_case_insensitive(self, make_lister):
        lister = make_lister({
            '/m': ['A.MP3', 'b.Flac', 'c.OGG', 'd.wav', 'e.m4a', 'notes.txt',
                   'mp3', 'song.mp3.bak', 'cover.jpg'],
        })
        _, tracks = scan(lister, '/m')
        assert [t.name for t in tracks] == ['A', 'b', 'c', 'd']

    def test_track_defaults(self, make_lister):
        lister = make_lister({'/m': ['Live.At.Home.ogg']})
        _, tracks = scan(lister, '/m')
        assert tracks == [Track(path='/m/Live.At.Home.ogg', name='Live.At.Home')]
        assert tracks[0].artist == 'Unknown'
        assert tracks[0].album == 'Unknown'
        assert tracks[0].duration == 0

    def test_paths_use_single_separator(self, make_lister):
        lister = make_lister({
            '/music/': ['a.mp3', 'sub/'],
            '/music/sub': ['b.wav'],
        })
        _, tracks = scan(lister, '/music/')
        assert [t.path for t in tracks] == ['/music/a.mp3', '/music/sub/b.wav']
        assert all('//' not in t.path for t in tracks)

    def test_depth_first_order_follows_listing(self, make_lister):
        lister = make_lister({
            '/m': ['z.mp3', 'd/', 'a.mp3'],
            '/m/d': ['y.mp3', 'e/', 'b.mp3'],
            '/m/d/e': ['x.mp3'],
        })
        _, tracks = scan(lister, '/m')
        assert [t.name for t in tracks] == ['z', 'y', 'x', 'b', 'a']

    def test_rescan_is_deterministic(self, music_tree):
        scanner = DirectoryScanner(music_tree)
        first = asyncio.run(scanner.scan('/music'))
        second = asyncio.run(scanner.scan('/music'))
        assert first == second

    def test_unreadable_subdirectory_is_skipped(self, make_lister, caplog):
        lister = make_lister({
            '/m': ['a.mp3', 'locked/', 'open/'],
            '/m/locked': PermissionError('denied'),
            '/m/open': ['b.mp3'],
        })
        with caplog.at_level(logging.WARNING):
            scanner, tracks = scan(lister, '/m')

        assert [t.name for t in tracks] == ['a', 'b']
        assert len(scanner.errors) == 1
        error = scanner.errors[0]
        assert isinstance(error, ScanError)
        assert error.path == '/m/locked'
        assert isinstance(error.cause, PermissionError)
        assert sum('/m/locked' in r.getMessage() for r in caplog.records) == 1

    def test_unreadable_root_yields_empty_result(self, make_lister):
        lister = make_lister({'/m': OSError('I/O error')})
        scanner, tracks = scan(lister, '/m')
        assert tracks == []
        assert len(scanner.errors) == 1

    def test_missing_root_yields_empty_result(self, make_lister):
        _, tracks = scan(make_lister({}), '/nowhere')
        assert tracks == []

    def test_custom_extension_set(self, make_lister):
        lister = make_lister({'/m': ['a.mp3', 'b.opus']})
        _, tracks = scan(lister, '/m', extensions={'OPUS'})
        assert [t.name for t in tracks] == ['b']

    def test_deep_tree_does_not_recurse(self, make_lister):
        depth = 2000
        tree = {}
        path = '/r'
        for _ in range(depth):
            tree[path] = ['d/']
            path += '/d'
        tree[path] = ['deep.mp3']
        _, tracks = scan(make_lister(tree), '/r', guard_cycles=False)
        assert len(tracks) == 1
        assert tracks[0].path.endswith('/d/deep.mp3')

    def test_is_supported(self, make_lister):
        scanner = DirectoryScanner(make_lister({}))
        assert scanner.is_supported('x.FLAC') is True
        assert scanner.is_supported('x.flac.part') is False
        assert scanner.is_supported('flac') is False

    @pytest.mark.skipif(not hasattr(os, 'symlink'), reason='symlinks unavailable')
    def test_symlink_cycle_is_visited_once(self, temp_dir):
        (temp_dir / 'a.mp3').touch()
        (temp_dir / 'sub').mkdir()
        (temp_dir / 'sub' / 'b.ogg').touch()
        try:
            os.symlink(temp_dir, temp_dir / 'sub' / 'loop', target_is_directory=True)
        except OSError:
            pytest.skip('cannot create symlinks here')

        _, tracks = scan(LocalDirectoryLister(), str(temp_dir))
        assert sorted(t.name for t in tracks) == ['a', 'b']

    @pytest.mark.skipif(not hasattr(os, 'symlink'), reason='symlinks unavailable')
    def test_sibling_links_to_one_directory_are_both_scanned(self, temp_dir):
        (temp_dir / 'shared').mkdir()
        (temp_dir / 'shared' / 's.mp3').touch()
        music = temp_dir / 'music'
        music.mkdir()
        try:
            os.symlink(temp_dir / 'shared', music / 'a', target_is_directory=True)
            os.symlink(temp_dir / 'shared', music / 'b', target_is_directory=True)
        except OSError:
            pytest.skip('cannot create symlinks here')

        _, tracks = scan(LocalDirectoryLister(), str(music))
        assert sorted(t.path for t in tracks) == [
            f'{music}/a/s.mp3',
            f'{music}/b/s.mp3',
        ]

    def test_overlapping_scans_keep_their_own_errors(self, make_lister):
        lister = make_lister({
            '/a': ['x/'],
            '/a/x': PermissionError('denied'),
            '/b': ['ok.mp3'],
        })
        scanner = DirectoryScanner(lister)

        async def scenario():
            gate = asyncio.Event()
            lister.gates['/a/x'] = gate
            slow = asyncio.create_task(scanner.scan('/a'))
            await asyncio.sleep(0)
            await scanner.scan('/b')
            fast_errors = scanner.errors
            gate.set()
            await slow
            return fast_errors

        fast_errors = asyncio.run(scenario())
        assert fast_errors == []
        assert [e.path for e in scanner.errors] == ['/a/x']
