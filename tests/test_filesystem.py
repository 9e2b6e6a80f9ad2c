"""Tests for file-system helpers."""

import asyncio

import pytest

from shuffle.filesystem import DirectoryEntry, LocalDirectoryLister, join_path, path_to_uri


class TestJoinPath:
    """Test join_path."""

    @pytest.mark.parametrize("parent,name,expected", [
        ("/music", "a.mp3", "/music/a.mp3"),
        ("/music/", "a.mp3", "/music/a.mp3"),
        ("C:\\Music\\", "a.mp3", "C:\\Music\\a.mp3"),
        ("/", "music", "/music"),
    ])
    def test_single_separator(self, parent, name, expected):
        assert join_path(parent, name) == expected


class TestPathToUri:
    """Test path_to_uri."""

    def test_absolute_path(self):
        assert path_to_uri("/music/a.mp3") == "file:///music/a.mp3"

    def test_special_characters_are_quoted(self):
        assert path_to_uri("/music/My Song #1.mp3") == "file:///music/My%20Song%20%231.mp3"


class TestLocalDirectoryLister:
    """Test LocalDirectoryLister class."""

    def test_lists_files_and_directories(self, temp_dir):
        (temp_dir / 'a.mp3').touch()
        (temp_dir / 'sub').mkdir()

        entries = asyncio.run(LocalDirectoryLister().list(str(temp_dir)))
        assert sorted(entries, key=lambda e: e.name) == [
            DirectoryEntry('a.mp3', False, True),
            DirectoryEntry('sub', True, False),
        ]

    def test_missing_directory_raises(self, temp_dir):
        with pytest.raises(OSError):
            asyncio.run(LocalDirectoryLister().list(str(temp_dir / 'missing')))
