"""Security validators for tracked source configuration."""

import re
from pathlib import PurePosixPath
from typing import Tuple


class SourceValidator:
    """Validates tracked sources before they are used to build paths.

    Owner, repository and branch names end up in clone URLs and in output
    directory names, so they must not be able to traverse out of the temp
    root or the output directory.
    """

    NAME_PATTERN = re.compile(r'^[\w\-\.]+$')
    BRANCH_PATTERN = re.compile(r'^[\w\-\./]+$')

    def validate_name(self, value: str) -> Tuple[bool, str]:
        """
        Validate an owner or repository name component.

        Args:
            value: Owner or repository name

        Returns:
            Tuple of (is_valid, error_message)
        """
        if not value or len(value) > 100:
            return False, "Invalid name length"
        if value in ('.', '..'):
            return False, "Path traversal detected"
        if not self.NAME_PATTERN.match(value):
            return False, "Invalid characters in name"
        return True, ""

    def validate_branch(self, branch: str) -> Tuple[bool, str]:
        """
        Validate a branch name.

        Prevents:
        - Path traversal (../)
        - Absolute paths (/)
        - Special characters
        - Excessive length

        Args:
            branch: Branch name, may contain slashes (``feature/x``)

        Returns:
            Tuple of (is_valid, error_message)
        """
        if not branch or len(branch) > 200:
            return False, "Invalid branch length"
        if not self.BRANCH_PATTERN.match(branch):
            return False, "Invalid characters in branch"
        if '..' in branch or branch.startswith('/') or branch.endswith('/'):
            return False, "Path traversal detected"
        if any(part in ('', '.') for part in branch.split('/')):
            return False, "Empty path component in branch"
        return True, ""

    @staticmethod
    def validate_relative_path(path: str) -> Tuple[bool, str]:
        """Validate a path that must stay inside a cloned repository."""
        if not path:
            return False, "Empty path"
        pure = PurePosixPath(path)
        if pure.is_absolute():
            return False, "Absolute paths not allowed"
        if '..' in pure.parts:
            return False, "Path traversal detected"
        return True, ""

    @staticmethod
    def validate_meta_file(file_name: str) -> Tuple[bool, str]:
        """The metadata file lives directly in the output root."""
        if not file_name or file_name in ('.', '..'):
            return False, "Invalid file name"
        if '/' in file_name or '\\' in file_name:
            return False, "File name must not contain path separators"
        return True, ""

    def validate_source(self, source) -> Tuple[bool, str]:
        """
        Validate every component of a tracked source.

        Args:
            source: A ``TrackedSource``

        Returns:
            Tuple of (is_valid, error_message); the message names the field
        """
        checks = [
            ("owner", self.validate_name(source.owner)),
            ("name", self.validate_name(source.name)),
            ("branch", self.validate_branch(source.branch)),
            ("entry point", self.validate_relative_path(source.entry_point)),
            ("tsconfig", self.validate_relative_path(source.tsconfig)),
        ]
        for field_name, (is_valid, error) in checks:
            if not is_valid:
                return False, f"{field_name}: {error}"
        return True, ""
