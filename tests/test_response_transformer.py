"""
Unit tests for the NPS response -> client record transformations.
"""

import copy

from lta_protections.transformers import (
    TransformErrorKind,
    transform_apply_response_body,
    transform_read_response_body,
)
from lta_protections.transformers.field_mappers.map_certificate_date import (
    fuse_certificate_date,
)


class TestApplicationResponse:
    """Tests for the application response transformation."""

    def test_full_response(self, nps_application_response):
        """Test that the protection branch is flattened and decoded."""
        record = transform_apply_response_body("A", nps_application_response).unwrap()
        assert record == {
            "nino": "AB123456A",
            "psaCheckReference": "PSA123456789",
            "protectionID": 1,
            "version": 1,
            "protectionType": "FP2016",
            "status": "Open",
            "certificateDate": "2015-06-01T14:30:00",
            "notificationId": 3,
            "protectionReference": "FP161234567890A",
        }

    def test_nino_gets_suffix(self):
        """Test that the NINO is rebuilt as AB123456 + A."""
        response = {"nino": "AB123456", "protection": {"type": 2}}
        record = transform_apply_response_body("A", response).record
        assert record["nino"] == "AB123456A"
        assert record["protectionType"] == "IP2014"

    def test_protection_branch_is_pruned(self, nps_application_response):
        """Test that no protection branch survives."""
        record = transform_apply_response_body("A", nps_application_response).record
        assert "protection" not in record
        assert "pensionSchemeAdministratorCheckReference" not in record

    def test_optional_fields_absent(self):
        """Test that absent optional fields produce no keys."""
        response = {"nino": "AB123456", "protection": {"type": 1}}
        record = transform_apply_response_body("C", response).record
        assert record == {"nino": "AB123456C", "protectionType": "FP2016"}

    def test_amounts_and_post_a_day_bce(self):
        """Test the copied amounts and the postADayBCE rename."""
        response = {
            "nino": "AB123456",
            "protection": {
                "type": 3,
                "relevantAmount": 1250000.0,
                "preADayPensionInPayment": 1.0,
                "postADayBCE": 2.0,
                "uncrystallisedRights": 3.0,
                "nonUKRights": 4.0,
            },
        }
        record = transform_apply_response_body("A", response).record
        assert record["relevantAmount"] == 1250000.0
        assert record["preADayPensionInPayment"] == 1.0
        assert record["postADayBenefitCrystallisationEvents"] == 2.0
        assert record["uncrystallisedRights"] == 3.0
        assert record["nonUKRights"] == 4.0
        assert "postADayBCE" not in record

    def test_other_top_level_fields_pass_through(self):
        """Test that unmapped top-level NPS fields are kept."""
        response = {"nino": "AB123456", "message": "ok", "protection": {"type": 1}}
        assert transform_apply_response_body("A", response).record["message"] == "ok"

    def test_input_is_not_mutated(self, nps_application_response):
        """Test that the NPS body is left untouched."""
        original = copy.deepcopy(nps_application_response)
        transform_apply_response_body("A", nps_application_response)
        assert nps_application_response == original


class TestCertificateDate:
    """Tests for certificate date/time fusion."""

    def test_date_and_time(self):
        """Test that date and time are joined with T."""
        response = {
            "nino": "AB123456",
            "protection": {"type": 1, "certificateDate": "2015-06-01", "certificateTime": "14:30:00"},
        }
        record = transform_apply_response_body("A", response).record
        assert record["certificateDate"] == "2015-06-01T14:30:00"

    def test_date_only(self):
        """Test that a date without a time is kept as is."""
        response = {"nino": "AB123456", "protection": {"type": 1, "certificateDate": "2015-06-01"}}
        record = transform_apply_response_body("A", response).record
        assert record["certificateDate"] == "2015-06-01"

    def test_neither(self):
        """Test that no date means no certificateDate key."""
        response = {"nino": "AB123456", "protection": {"type": 1, "certificateTime": "14:30:00"}}
        record = transform_apply_response_body("A", response).record
        assert "certificateDate" not in record

    def test_non_string_date_is_a_type_mismatch(self):
        """Test that a numeric date is not treated as absent."""
        response = {"nino": "AB123456", "protection": {"type": 1, "certificateDate": 20150601}}
        result = transform_apply_response_body("A", response)
        assert result.error_kinds() == {TransformErrorKind.TYPE_MISMATCH}
        assert result.issues[0].field_path == "protection.certificateDate"

    def test_fuse_helper(self):
        """Test the three fusion scenarios directly."""
        assert fuse_certificate_date("2015-06-01", "14:30:00") == "2015-06-01T14:30:00"
        assert fuse_certificate_date("2015-06-01", None) == "2015-06-01"
        assert fuse_certificate_date(None, None) is None


class TestApplicationResponseFailures:
    """Tests for NPS responses that cannot be transformed."""

    def test_missing_type(self):
        """Test that a protection without a type fails."""
        result = transform_apply_response_body("A", {"nino": "AB123456", "protection": {}})
        assert result.issues[0].kind == TransformErrorKind.MISSING_REQUIRED_FIELD
        assert result.issues[0].field_path == "protection.type"

    def test_missing_nino(self):
        """Test that a response without a nino fails."""
        result = transform_apply_response_body("A", {"protection": {"type": 1}})
        assert [i.field_path for i in result.issues] == ["nino"]

    def test_non_string_nino(self):
        """Test that a numeric nino is a type mismatch."""
        result = transform_apply_response_body("A", {"nino": 123, "protection": {"type": 1}})
        assert result.error_kinds() == {TransformErrorKind.TYPE_MISMATCH}

    def test_type_out_of_range(self):
        """Test that an unknown type code fails."""
        response = {"nino": "AB123456", "protection": {"type": 42}}
        result = transform_apply_response_body("A", response)
        assert result.error_kinds() == {TransformErrorKind.INDEX_OUT_OF_RANGE}
        assert result.issues[0].field_path == "protectionType"

    def test_status_out_of_range(self):
        """Test that an unknown status code fails rather than being dropped."""
        response = {"nino": "AB123456", "protection": {"type": 1, "status": 7}}
        result = transform_apply_response_body("A", response)
        assert result.error_kinds() == {TransformErrorKind.INDEX_OUT_OF_RANGE}

    def test_independent_issues_are_all_reported(self):
        """Test that nino and protection issues are reported together."""
        result = transform_apply_response_body("A", {"protection": {"status": 1}})
        assert {i.field_path for i in result.issues} == {"nino", "protection.type"}

    def test_non_object_response(self):
        """Test that a non-object body fails."""
        result = transform_apply_response_body("A", None)
        assert result.error_kinds() == {TransformErrorKind.TYPE_MISMATCH}


class TestReadResponse:
    """Tests for the read-existing-protections transformation."""

    def test_protections_are_flattened(self):
        """Test that every element is reshaped like a single protection."""
        response = {
            "nino": "AB123456",
            "pensionSchemeAdministratorCheckReference": "PSA123456789",
            "protections": [
                {"id": 1, "type": 1, "status": 1, "certificateDate": "2015-06-01"},
                {"id": 2, "type": 3, "status": 3, "postADayBCE": 10.0},
            ],
        }
        record = transform_read_response_body("D", response).unwrap()
        assert record == {
            "nino": "AB123456D",
            "psaCheckReference": "PSA123456789",
            "protections": [
                {
                    "protectionID": 1,
                    "protectionType": "FP2016",
                    "status": "Open",
                    "certificateDate": "2015-06-01",
                },
                {
                    "protectionID": 2,
                    "protectionType": "IP2016",
                    "status": "Withdrawn",
                    "postADayBenefitCrystallisationEvents": 10.0,
                },
            ],
        }

    def test_no_protections(self):
        """Test that a response without protections keeps only the nino."""
        record = transform_read_response_body("A", {"nino": "AB123456"}).record
        assert record == {"nino": "AB123456A"}

    def test_protections_not_a_list(self):
        """Test that a non-array protections field fails."""
        result = transform_read_response_body("A", {"nino": "AB123456", "protections": {}})
        assert result.error_kinds() == {TransformErrorKind.TYPE_MISMATCH}
        assert result.issues[0].field_path == "protections"

    def test_non_object_element(self):
        """Test that a non-object element is malformed."""
        response = {"nino": "AB123456", "protections": [{"type": 1}, 5]}
        result = transform_read_response_body("A", response)
        assert result.issues[0].kind == TransformErrorKind.MALFORMED_ARRAY_ELEMENT
        assert result.issues[0].source_value == 1

    def test_element_issue_paths_name_the_element(self):
        """Test that issues inside an element carry its index."""
        response = {"nino": "AB123456", "protections": [{"type": 1}, {"status": 1}]}
        result = transform_read_response_body("A", response)
        assert [i.field_path for i in result.issues] == ["protections[1].type"]
