"""Tests for the musics API surface."""

import json

import pytest

from musicdb.api.models import MusicListDTO
from musicdb.api.musics_api import (
    create_music,
    delete_music,
    list_musics,
    show_music,
    update_music,
)
from musicdb.errors import EditConflictError, RecordNotFoundError, ValidationFailedError

SONG_A = {"title": "Song A", "duration": 200, "popularity": 1.5, "genres": ["pop"]}


def test_create_and_show(session):
    created = create_music(session, SONG_A)
    shown = show_music(session, created.id)
    assert shown.title == "Song A"
    assert shown.version == 1


def test_create_reports_every_violation(session):
    with pytest.raises(ValidationFailedError) as exc_info:
        create_music(session, {"title": "", "genres": ["a"] * 6})
    assert set(exc_info.value.errors) == {"title", "duration", "popularity", "genres"}


def test_create_rejects_wrongly_typed_fields(session):
    with pytest.raises(ValidationFailedError) as exc_info:
        create_music(session, {**SONG_A, "duration": "three minutes"})
    assert set(exc_info.value.errors) == {"duration"}


def test_create_ignores_server_assigned_fields(session):
    created = create_music(session, {**SONG_A, "id": 77, "version": 9})
    assert created.id == 1
    assert created.version == 1


def test_partial_update_keeps_unspecified_fields(session):
    created = create_music(session, SONG_A)

    updated = update_music(session, created.id, {"title": "Song A2"})

    assert updated.version == 2
    assert updated.title == "Song A2"
    assert updated.duration == 200
    assert updated.genres == ["pop"]


def test_null_fields_in_update_are_left_unchanged(session):
    created = create_music(session, SONG_A)
    updated = update_music(session, created.id, {"title": None, "popularity": 2.5})
    assert updated.title == "Song A"
    assert updated.popularity == pytest.approx(2.5)


def test_update_revalidates_merged_record(session):
    created = create_music(session, SONG_A)
    with pytest.raises(ValidationFailedError) as exc_info:
        update_music(session, created.id, {"genres": ["pop", "pop"]})
    assert exc_info.value.errors["genres"] == "must not contain duplicate values"
    assert show_music(session, created.id).version == 1


def test_update_with_expected_version_mismatch_conflicts(session):
    created = create_music(session, SONG_A)
    update_music(session, created.id, {"title": "Song A2"}, expected_version=1)

    with pytest.raises(EditConflictError):
        update_music(session, created.id, {"title": "Song A3"}, expected_version=1)
    assert show_music(session, created.id).title == "Song A2"


def test_update_missing_record_is_not_found(session):
    with pytest.raises(RecordNotFoundError):
        update_music(session, 404, {"title": "nope"})


def test_delete_then_show_is_not_found(session):
    created = create_music(session, SONG_A)
    delete_music(session, created.id)
    with pytest.raises(RecordNotFoundError):
        show_music(session, created.id)


def test_list_from_query_parameters(session):
    for i in range(25):
        create_music(session, {**SONG_A, "title": f"Song {i}", "genres": ["pop", "rock"] if i % 2 else ["pop"]})

    result = list_musics(session, {"genres": "rock", "page": "2", "page_size": "5", "sort": "-id"})

    assert isinstance(result, MusicListDTO)
    assert len(result.musics) == 5
    assert all("rock" in m.genres for m in result.musics)
    assert result.metadata.total_records == 12
    assert result.metadata.last_page == 3
    ids = [m.id for m in result.musics]
    assert ids == sorted(ids, reverse=True)


def test_list_rejects_invalid_parameters(session):
    with pytest.raises(ValidationFailedError) as exc_info:
        list_musics(session, {"sort": "created_at", "page": "0"})
    assert dict(exc_info.value.errors) == {
        "sort": "invalid sort value",
        "page": "must be greater than zero",
    }


def test_list_result_serializes_for_transport(session):
    create_music(session, SONG_A)
    payload = list_musics(session, {}).model_dump(mode="json")
    assert payload["metadata"] == {
        "current_page": 1,
        "page_size": 20,
        "first_page": 1,
        "last_page": 1,
        "total_records": 1,
    }
    assert payload["musics"][0]["genres"] == ["pop"]


def test_create_rejects_duration_beyond_integer_column(session):
    with pytest.raises(ValidationFailedError) as exc_info:
        create_music(session, {**SONG_A, "duration": 10**19})
    assert set(exc_info.value.errors) == {"duration"}


def test_create_rejects_title_that_is_not_utf8(session):
    payload = json.loads('{"title": "\\ud800", "duration": 200, "popularity": 1.5, "genres": ["pop"]}')
    with pytest.raises(ValidationFailedError) as exc_info:
        create_music(session, payload)
    assert set(exc_info.value.errors) == {"title"}


def test_list_rejects_huge_page_number(session):
    with pytest.raises(ValidationFailedError) as exc_info:
        list_musics(session, {"page": str(10**19)})
    assert dict(exc_info.value.errors) == {"page": "must be a maximum of 10 million"}
