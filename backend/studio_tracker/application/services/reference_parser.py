"""Chat mention and reference parsing.

Compose time: look at the text left of the cursor for a trailing ``@word``
(user mention picker) or ``#word`` (entity reference picker), and splice the
chosen item back into the text while recording it as structured data.

Render time: split a stored message body into text, mention and reference
segments. A reference segment is only linked when the message carries a
structured reference with exactly the same name.
"""

import re
from dataclasses import dataclass

from studio_tracker.domain.entities import (
    CatalogItem,
    ChatMessage,
    ChatUser,
    Mention,
    MessageSegment,
    Reference,
    ReferenceType,
)

MENTION_TRIGGER = re.compile(r"@(\w*)$")
REFERENCE_TRIGGER = re.compile(r"#(\w*)$")

MESSAGE_TOKEN = re.compile(
    r"@\w+(?:\s+\w+)?"
    r"|#(?:project|video|script|post-production):\S+(?:\s+[^\s#@]+)*"
)
REFERENCE_TOKEN = re.compile(r"#(project|video|script|post-production):(.+)", re.DOTALL)

REFERENCE_ROUTES: dict[ReferenceType, str] = {
    ReferenceType.PROJECT: "/projects/{id}",
    ReferenceType.VIDEO: "/videos/{id}",
    ReferenceType.SCRIPT: "/scripts",
    ReferenceType.POST_PRODUCTION: "/post-productions/{id}",
}

PICKER_MENTION = "mention"
PICKER_REFERENCE = "reference"


@dataclass(frozen=True)
class ComposeTrigger:
    """An open picker: which kind, what was typed after the trigger, and where it starts."""

    kind: str  # "mention" | "reference"
    query: str  # lower-cased text typed after the trigger character
    position: int  # index of the "@" or "#"


def detect_trigger(text: str, cursor: int) -> ComposeTrigger | None:
    """Find the picker the text left of ``cursor`` asks for, if any.

    When both trigger characters qualify, the one closer to the cursor wins.
    """
    before = text[:cursor]
    candidates: list[ComposeTrigger] = []
    mention = MENTION_TRIGGER.search(before)
    if mention:
        candidates.append(ComposeTrigger(PICKER_MENTION, mention.group(1).lower(), mention.start()))
    reference = REFERENCE_TRIGGER.search(before)
    if reference:
        candidates.append(ComposeTrigger(PICKER_REFERENCE, reference.group(1).lower(), reference.start()))
    if not candidates:
        return None
    return max(candidates, key=lambda t: t.position)


def filter_users(
    users: list[ChatUser],
    query: str,
    *,
    exclude_user_id: str | None = None,
    already_selected: list[Mention] | None = None,
) -> list[ChatUser]:
    """Users whose name contains ``query`` (case-insensitive), minus self and already-picked ones."""
    taken = {m.user_id for m in already_selected or []}
    needle = query.lower()
    return [
        u for u in users
        if u.id != exclude_user_id and u.id not in taken and needle in (u.name or "").lower()
    ]


def filter_catalog(items: list[CatalogItem], query: str) -> list[CatalogItem]:
    needle = query.lower()
    return [item for item in items if needle in (item.name or "").lower()]


class MessageComposer:
    """Input-box state for one chat message being written.

    Holds the raw text, the cursor, the single open picker and the
    structured mentions/references picked so far.
    """

    def __init__(self, current_user_id: str | None = None):
        self._current_user_id = current_user_id
        self.reset()

    def reset(self) -> None:
        self.text = ""
        self.cursor = 0
        self.mentions: list[Mention] = []
        self.references: list[Reference] = []
        self.trigger: ComposeTrigger | None = None
        self.reference_type: ReferenceType | None = None

    @property
    def picker(self) -> str | None:
        return self.trigger.kind if self.trigger else None

    def update(self, text: str, cursor: int | None = None) -> ComposeTrigger | None:
        """Record an edit and work out which picker (if any) is open."""
        self.text = text
        self.cursor = len(text) if cursor is None else max(0, min(cursor, len(text)))
        trigger = detect_trigger(self.text, self.cursor)
        if trigger is None or trigger.kind != PICKER_REFERENCE:
            self.reference_type = None
        self.trigger = trigger
        return trigger

    def mention_candidates(self, users: list[ChatUser]) -> list[ChatUser]:
        if self.picker != PICKER_MENTION:
            return []
        return filter_users(
            users,
            self.trigger.query,
            exclude_user_id=self._current_user_id,
            already_selected=self.mentions,
        )

    def reference_candidates(
        self, catalogs: dict[ReferenceType, list[CatalogItem]]
    ) -> list[CatalogItem]:
        if self.picker != PICKER_REFERENCE or self.reference_type is None:
            return []
        return filter_catalog(catalogs.get(self.reference_type, []), self.trigger.query)

    def select_mention(self, user: ChatUser) -> None:
        self._splice("@", f"@{user.name} ")
        self.mentions.append(Mention(user_id=user.id, user_name=user.name))
        self.trigger = None

    def select_reference_type(self, reference_type: ReferenceType) -> None:
        """First step of the reference picker."""
        if self.picker == PICKER_REFERENCE:
            self.reference_type = reference_type

    def select_reference(self, item: CatalogItem) -> None:
        """Second step of the reference picker."""
        if self.reference_type is None:
            raise ValueError("Choose a reference type before choosing an item")
        self._splice("#", f"#{self.reference_type.label}:{item.name} ")
        self.references.append(Reference(type=self.reference_type, id=item.id, name=item.name))
        self.trigger = None
        self.reference_type = None

    def _splice(self, trigger_char: str, replacement: str) -> None:
        before = self.text[: self.cursor]
        after = self.text[self.cursor:]
        start = before.rfind(trigger_char)
        if start < 0:
            start = len(before)
        self.text = before[:start] + replacement + after
        self.cursor = start + len(replacement)


# ── Render time ──────────────────────────────────────────────────────


def parse_message_content(content: str) -> list[MessageSegment]:
    """Split a message body into text, mention and reference segments."""
    segments: list[MessageSegment] = []
    last_index = 0
    for match in MESSAGE_TOKEN.finditer(content):
        if match.start() > last_index:
            segments.append(MessageSegment("text", content[last_index:match.start()]))
        token = match.group(0)
        kind = "mention" if token.startswith("@") else "reference"
        segments.append(MessageSegment(kind, token))
        last_index = match.end()
    if last_index < len(content):
        segments.append(MessageSegment("text", content[last_index:]))
    return segments or [MessageSegment("text", content)]


def resolve_reference(token: str, references: list[Reference]) -> Reference | None:
    """First stored reference whose name equals the token's name, if any."""
    match = REFERENCE_TOKEN.match(token)
    if not match:
        return None
    name = match.group(2)
    return next((ref for ref in references if ref.name == name), None)


def render_content(content: str, references: list[Reference]) -> list[MessageSegment]:
    """Segments of ``content`` with resolvable references attached (and so clickable)."""
    rendered: list[MessageSegment] = []
    for segment in parse_message_content(content):
        if segment.type == "reference":
            ref = resolve_reference(segment.content, references)
            rendered.append(MessageSegment("reference", segment.content, reference=ref))
        else:
            rendered.append(segment)
    return rendered


def render_message(message: ChatMessage) -> list[MessageSegment]:
    return render_content(message.content, message.references)


def reference_route(reference: Reference) -> str:
    return REFERENCE_ROUTES[reference.type].format(id=reference.id)
