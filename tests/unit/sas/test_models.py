"""Tests for SAS data models."""

from datetime import datetime, timedelta, timezone

import pytest

from blobsas.exceptions import InvalidArgumentError
from blobsas.sas.models import (
    BlobScope,
    ContainerScope,
    SasDescriptor,
    SasResource,
    SasUrlMap,
    SignedQuery,
    ValidityWindow,
    format_sas_time,
)

NOW = datetime(2025, 6, 4, 10, 1, 0, 456789, tzinfo=timezone.utc)


class TestScopes:
    """Test resource scopes."""

    def test_container_scope(self):
        scope = ContainerScope("uploads")

        assert scope.resource == SasResource.CONTAINER
        assert scope.resource.value == "c"
        assert scope.canonical_resource("acct") == "/blob/acct/uploads"

    def test_blob_scope_keeps_literal_path(self):
        scope = BlobScope("uploads", "a/b c.pdf")

        assert scope.resource.value == "b"
        assert scope.canonical_resource("acct") == "/blob/acct/uploads/a/b c.pdf"

    @pytest.mark.parametrize("container", ["", "  ", None])
    def test_blank_container(self, container):
        with pytest.raises(InvalidArgumentError) as exc_info:
            ContainerScope(container)

        assert exc_info.value.field == "container"

    def test_blank_blob_path(self):
        with pytest.raises(InvalidArgumentError) as exc_info:
            BlobScope("uploads", " ")

        assert exc_info.value.field == "blob_path"


class TestValidityWindow:
    """Test validity windows."""

    def test_from_duration_backdates_start(self):
        window = ValidityWindow.from_duration(NOW, 15)

        assert window.starts_on == datetime(2025, 6, 4, 10, 0, 0, tzinfo=timezone.utc)
        assert window.expires_on == datetime(2025, 6, 4, 10, 16, 0, tzinfo=timezone.utc)
        assert window.starts_on < NOW

    def test_expiry_is_duration_after_now(self):
        window = ValidityWindow.from_duration(NOW, 15)

        assert abs((window.expires_on - NOW) - timedelta(minutes=15)) < timedelta(seconds=1)

    def test_custom_clock_skew(self):
        window = ValidityWindow.from_duration(NOW, 5, clock_skew=timedelta(minutes=10))

        assert window.expires_on - window.starts_on == timedelta(minutes=15)

    @pytest.mark.parametrize("minutes", [0, -1, -60])
    def test_non_positive_duration(self, minutes):
        with pytest.raises(InvalidArgumentError) as exc_info:
            ValidityWindow.from_duration(NOW, minutes)

        assert exc_info.value.field == "validity_minutes"

    def test_expiry_must_follow_start(self):
        with pytest.raises(InvalidArgumentError):
            ValidityWindow(starts_on=NOW, expires_on=NOW)

    def test_rendering(self):
        window = ValidityWindow.from_duration(NOW, 15)

        assert window.start == "2025-06-04T10:00:00Z"
        assert window.expiry == "2025-06-04T10:16:00Z"

    def test_naive_datetimes_treated_as_utc(self):
        window = ValidityWindow(
            starts_on=datetime(2025, 1, 1, 0, 0, 0),
            expires_on=datetime(2025, 1, 1, 1, 0, 0),
        )

        assert window.start == "2025-01-01T00:00:00Z"

    def test_other_timezones_converted(self):
        plus_two = timezone(timedelta(hours=2))

        assert format_sas_time(datetime(2025, 1, 1, 12, 0, 0, tzinfo=plus_two)) == "2025-01-01T10:00:00Z"


class TestSasDescriptor:
    """Test descriptor validation."""

    def test_rejects_unknown_scope(self):
        with pytest.raises(InvalidArgumentError) as exc_info:
            SasDescriptor(
                account_name="acct",
                scope="uploads",
                permissions="r",
                window=ValidityWindow.from_duration(NOW, 15),
                version="2020-08-04",
            )

        assert exc_info.value.field == "scope"

    def test_rejects_blank_permissions(self):
        with pytest.raises(InvalidArgumentError):
            SasDescriptor(
                account_name="acct",
                scope=ContainerScope("uploads"),
                permissions="",
                window=ValidityWindow.from_duration(NOW, 15),
                version="2020-08-04",
            )


class TestSignedQuery:
    """Test query rendering."""

    def test_percent_encodes_values(self):
        query = SignedQuery(params=(("st", "2025-06-04T10:00:00Z"), ("sig", "a+b/c=")))

        assert query.to_query_string() == "st=2025-06-04T10%3A00%3A00Z&sig=a%2Bb%2Fc%3D"

    def test_preserves_order(self):
        query = SignedQuery(params=(("sv", "1"), ("sr", "c"), ("sig", "x")))

        assert str(query).split("&") == ["sv=1", "sr=c", "sig=x"]
        assert query.signature == "x"
        assert query.get("missing") is None
        assert query.as_dict() == {"sv": "1", "sr": "c", "sig": "x"}


class TestSasUrlMap:
    """Test case-insensitive result mapping."""

    def test_case_insensitive_overwrite(self):
        result = SasUrlMap()
        result["F.pdf"] = "first"
        result["f.pdf"] = "second"

        assert len(result) == 1
        assert result["F.PDF"] == "second"
        assert list(result) == ["F.pdf"]

    def test_contains_and_delete(self):
        result = SasUrlMap({"Docs/A.txt": "url"})

        assert "docs/a.txt" in result
        del result["DOCS/A.TXT"]
        assert "docs/a.txt" not in result
        assert 1 not in result

    def test_skipped_starts_empty(self):
        assert SasUrlMap().skipped == []
