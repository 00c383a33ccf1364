"""
Branch parsing and upload validation
"""
import pytest

from notenexus.core.exceptions import FileTooLargeError, InvalidFileTypeError, ValidationError
from notenexus.services.moderation_service import file_extension, parse_branches, validate_upload


class TestParseBranches:

    def test_json_array(self):
        assert parse_branches('["CSE", "IT"]') == ["CSE", "IT"]

    def test_comma_separated(self):
        assert parse_branches("CSE, IT ,ECE") == ["CSE", "IT", "ECE"]

    def test_single_branch_field(self):
        assert parse_branches(None, "MECH") == ["MECH"]

    def test_both_fields_merge(self):
        assert parse_branches("CSE,IT", "ECE") == ["CSE", "IT", "ECE"]

    def test_duplicates_and_blanks_dropped(self):
        assert parse_branches('["CSE", "", "CSE", " IT "]', "IT") == ["CSE", "IT"]

    @pytest.mark.parametrize("branches, branch", [
        (None, None),
        ("", None),
        ("[]", None),
        (" , ,", None),
    ])
    def test_at_least_one_branch(self, branches, branch):
        with pytest.raises(ValidationError) as exc_info:
            parse_branches(branches, branch)
        assert exc_info.value.details == {"field": "branches"}

    @pytest.mark.parametrize("branches", ['["CSE",', '[1, 2]', '["CSE", null]'])
    def test_malformed_values(self, branches):
        with pytest.raises(ValidationError):
            parse_branches(branches)


class TestValidateUpload:

    def test_extension_is_lower_cased(self):
        assert file_extension("Lecture.Notes.PDF") == "pdf"
        assert file_extension("README") == ""

    def test_accepts_allowed_file(self):
        validate_upload("unit1.pdf", 2048)

    def test_rejects_disallowed_extension(self):
        with pytest.raises(InvalidFileTypeError):
            validate_upload("setup.exe", 2048)

    def test_rejects_missing_extension(self):
        with pytest.raises(InvalidFileTypeError):
            validate_upload("notes", 2048)

    def test_rejects_empty_file(self):
        with pytest.raises(ValidationError):
            validate_upload("unit1.pdf", 0)

    def test_rejects_oversized_file(self):
        with pytest.raises(FileTooLargeError):
            validate_upload("unit1.pdf", 25 * 1024 * 1024 + 1)

    def test_requires_filename(self):
        with pytest.raises(ValidationError):
            validate_upload("", 10)
