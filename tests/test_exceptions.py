import pytest

from seriesscope import (
    ChannelNotFound,
    EmptySource,
    ExplorerError,
    IngestionError,
    InvalidSeries,
    InvalidSettings,
    MissingHeader,
    RowParseFailure,
    SourceUnavailable,
)


def test_ingestion_errors_share_a_base():
    for cls in (SourceUnavailable, EmptySource, MissingHeader, RowParseFailure):
        assert issubclass(cls, IngestionError)
        assert issubclass(cls, ExplorerError)


def test_validation_errors():
    assert issubclass(InvalidSeries, ExplorerError)
    assert issubclass(InvalidSettings, ExplorerError)
    assert issubclass(InvalidSettings, ValueError)


def test_channel_not_found_behaves_like_keyerror():
    assert issubclass(ChannelNotFound, KeyError)
    with pytest.raises(KeyError):
        raise ChannelNotFound("V1")


def test_ingestion_error_default_and_custom_message():
    assert EmptySource().message == "CSV file is empty"
    assert MissingHeader().message == "CSV file has no headers"

    err = SourceUnavailable("Load error: connection refused")
    assert err.message == "Load error: connection refused"
    assert str(err) == "Load error: connection refused"
