"""Unit tests for chat mention/reference composing and rendering."""

import pytest

from studio_tracker.application.services import MessageComposer
from studio_tracker.application.services.reference_parser import (
    PICKER_MENTION,
    PICKER_REFERENCE,
    detect_trigger,
    filter_users,
    parse_message_content,
    reference_route,
    render_content,
    resolve_reference,
)
from studio_tracker.domain.entities import (
    CatalogItem,
    ChatUser,
    Mention,
    Reference,
    ReferenceType,
)

USERS = [
    ChatUser("u1", "Maya"),
    ChatUser("u2", "Ali"),
    ChatUser("u3", "Alina"),
]
CATALOGS = {
    ReferenceType.PROJECT: [CatalogItem("p1", "Launch"), CatalogItem("p2", "Spring Sale")],
    ReferenceType.VIDEO: [CatalogItem("v1", "Shoes")],
    ReferenceType.SCRIPT: [],
    ReferenceType.POST_PRODUCTION: [CatalogItem("pp1", "Teaser")],
}


# ── Compose time ──


def test_mention_and_reference_round_trip():
    composer = MessageComposer(current_user_id="u1")

    composer.update("hello @Al")
    assert composer.picker == PICKER_MENTION
    assert [u.name for u in composer.mention_candidates(USERS)] == ["Ali", "Alina"]
    composer.select_mention(USERS[1])
    assert composer.text == "hello @Ali "
    assert composer.picker is None

    composer.update(composer.text + "see #")
    assert composer.picker == PICKER_REFERENCE
    assert composer.reference_candidates(CATALOGS) == []
    composer.select_reference_type(ReferenceType.PROJECT)
    assert len(composer.reference_candidates(CATALOGS)) == 2

    composer.update(composer.text + "La")
    assert composer.reference_type is ReferenceType.PROJECT
    [launch] = composer.reference_candidates(CATALOGS)
    composer.select_reference(launch)

    assert composer.text == "hello @Ali see #project:Launch "
    assert composer.mentions == [Mention("u2", "Ali")]
    assert composer.references == [Reference(ReferenceType.PROJECT, "p1", "Launch")]

    segments = render_content(composer.text.strip(), composer.references)
    assert [s.type for s in segments] == ["text", "mention", "text", "reference"]
    assert segments[1].content.startswith("@Ali")
    assert segments[3].content == "#project:Launch"
    assert segments[3].clickable
    assert segments[3].reference.id == "p1"


def test_reference_is_inert_without_exact_name_match():
    segments = render_content(
        "see #project:Launch",
        [Reference(ReferenceType.PROJECT, "p1", "launch")],
    )

    assert segments[-1].type == "reference"
    assert not segments[-1].clickable


def test_splice_keeps_text_after_cursor():
    composer = MessageComposer(current_user_id="u1")
    composer.update("ping @Ma please", cursor=8)

    composer.select_mention(USERS[0])

    assert composer.text == "ping @Maya  please"
    assert composer.cursor == len("ping @Maya ")


def test_post_production_label_is_hyphenated():
    composer = MessageComposer()
    composer.update("#")
    composer.select_reference_type(ReferenceType.POST_PRODUCTION)
    composer.select_reference(CATALOGS[ReferenceType.POST_PRODUCTION][0])

    assert composer.text == "#post-production:Teaser "
    assert composer.references[0].type is ReferenceType.POST_PRODUCTION


def test_select_reference_requires_a_type():
    composer = MessageComposer()
    composer.update("#La")

    with pytest.raises(ValueError):
        composer.select_reference(CatalogItem("p1", "Launch"))


def test_reference_type_is_dropped_when_trigger_closes():
    composer = MessageComposer()
    composer.update("#")
    composer.select_reference_type(ReferenceType.VIDEO)

    composer.update("# done")

    assert composer.picker is None
    assert composer.reference_type is None


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("hello @Al", (PICKER_MENTION, "al")),
        ("see #proj", (PICKER_REFERENCE, "proj")),
        ("#abc @de", (PICKER_MENTION, "de")),
        ("@abc #de", (PICKER_REFERENCE, "de")),
        ("hello @Ali ", None),
        ("plain text", None),
        ("hi @Zoë", (PICKER_MENTION, "zoë")),
    ],
)
def test_detect_trigger(text, expected):
    trigger = detect_trigger(text, len(text))
    if expected is None:
        assert trigger is None
    else:
        assert (trigger.kind, trigger.query) == expected


def test_filter_users_skips_self_and_already_mentioned():
    result = filter_users(
        USERS, "", exclude_user_id="u1", already_selected=[Mention("u2", "Ali")]
    )

    assert [u.id for u in result] == ["u3"]


# ── Render time ──


def test_parse_empty_message_is_single_text_segment():
    [segment] = parse_message_content("")

    assert segment.type == "text"
    assert segment.content == ""


def test_parse_plain_text():
    [segment] = parse_message_content("no tokens here")

    assert segment.type == "text"


def test_multi_word_reference_name_resolves():
    ref = Reference(ReferenceType.PROJECT, "p2", "Spring Sale")

    segments = render_content("check #project:Spring Sale", [ref])

    assert segments[-1].content == "#project:Spring Sale"
    assert segments[-1].reference == ref


def test_duplicate_names_resolve_to_first_reference():
    first = Reference(ReferenceType.VIDEO, "v1", "Promo")
    second = Reference(ReferenceType.VIDEO, "v2", "Promo")

    assert resolve_reference("#video:Promo", [first, second]) is first


def test_resolve_ignores_non_reference_tokens():
    assert resolve_reference("@Ali", [Reference(ReferenceType.PROJECT, "p1", "Ali")]) is None


@pytest.mark.parametrize(
    ("ref_type", "route"),
    [
        (ReferenceType.PROJECT, "/projects/x"),
        (ReferenceType.VIDEO, "/videos/x"),
        (ReferenceType.SCRIPT, "/scripts"),
        (ReferenceType.POST_PRODUCTION, "/post-productions/x"),
    ],
)
def test_reference_routes(ref_type, route):
    assert reference_route(Reference(ref_type, "x", "Name")) == route
