"""Team chat endpoints — live window, panel state, send, compose and render helpers."""

from fastapi import APIRouter, Depends, HTTPException, status

from studio_tracker.application.schemas import (
    CatalogItemSchema,
    ChatLookupsResponse,
    ChatMessageResponse,
    ChatStateResponse,
    ChatUserSchema,
    ComposeRequest,
    ComposeResponse,
    ComposeSelectRequest,
    ComposeSelectResponse,
    MentionSchema,
    MessageSegmentSchema,
    NavigateResponse,
    ReferenceSchema,
    RenderRequest,
    SendMessageRequest,
    SendMessageResponse,
)
from studio_tracker.application.services import ChatEngine, MessageComposer
from studio_tracker.application.services.reference_parser import (
    PICKER_MENTION,
    PICKER_REFERENCE,
    reference_route,
    render_content,
    render_message,
)
from studio_tracker.domain.entities import (
    ChatMessage,
    Mention,
    MessageSegment,
    Reference,
    ReferenceType,
    Session,
)
from studio_tracker.infrastructure.dependencies import get_chat_engine, get_current_session

router = APIRouter(
    prefix="/chat",
    tags=["Chat"],
    dependencies=[Depends(get_current_session)],
)


# ── Mapping helpers ─────────────────────────────────────────────────


def _mention(schema: MentionSchema) -> Mention:
    return Mention(user_id=schema.user_id, user_name=schema.user_name)


def _reference(schema: ReferenceSchema) -> Reference:
    return Reference(type=schema.type, id=schema.id, name=schema.name)


def _reference_schema(ref: Reference) -> ReferenceSchema:
    return ReferenceSchema(type=ref.type, id=ref.id, name=ref.name)


def _segment_schema(segment: MessageSegment) -> MessageSegmentSchema:
    ref = segment.reference
    return MessageSegmentSchema(
        type=segment.type,
        content=segment.content,
        reference=_reference_schema(ref) if ref else None,
        route=reference_route(ref) if ref else None,
    )


def _message_response(message: ChatMessage) -> ChatMessageResponse:
    return ChatMessageResponse(
        id=message.id,
        content=message.content,
        sender_id=message.sender_id,
        sender_name=message.sender_name,
        created_at=message.created_at,
        mentions=[MentionSchema(user_id=m.user_id, user_name=m.user_name) for m in message.mentions],
        references=[_reference_schema(r) for r in message.references],
        segments=[_segment_schema(s) for s in render_message(message)],
    )


def _state(engine: ChatEngine) -> ChatStateResponse:
    return ChatStateResponse(
        status=engine.status.value,
        is_open=engine.is_open,
        unread_count=engine.unread_count,
        message_count=len(engine.messages),
        last_read=engine.last_read,
    )


def _composer(data: ComposeRequest, session: Session) -> MessageComposer:
    """Rebuild the input-box state the client sent."""
    composer = MessageComposer(current_user_id=session.id)
    composer.update(data.text, data.cursor)
    composer.mentions = [_mention(m) for m in data.mentions]
    composer.references = [_reference(r) for r in data.references]
    if data.reference_type is not None:
        composer.select_reference_type(data.reference_type)
    return composer


# ── Window and panel ────────────────────────────────────────────────


@router.get("", response_model=ChatStateResponse)
async def chat_state(engine: ChatEngine = Depends(get_chat_engine)) -> ChatStateResponse:
    return _state(engine)


@router.get("/messages", response_model=list[ChatMessageResponse])
async def list_messages(engine: ChatEngine = Depends(get_chat_engine)) -> list[ChatMessageResponse]:
    """The live window, oldest first, with each body split into render segments."""
    return [_message_response(m) for m in engine.messages]


@router.post("/messages", response_model=SendMessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    data: SendMessageRequest,
    engine: ChatEngine = Depends(get_chat_engine),
) -> SendMessageResponse:
    """Post a message; mentioned users other than the sender are notified."""
    if not data.content.strip():
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Message is empty",
        )
    sent = await engine.send(
        data.content,
        [_mention(m) for m in data.mentions],
        [_reference(r) for r in data.references],
    )
    if not sent:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="The message could not be sent",
        )
    return SendMessageResponse(success=True)


@router.post("/open", response_model=ChatStateResponse)
async def open_chat(engine: ChatEngine = Depends(get_chat_engine)) -> ChatStateResponse:
    """Show the panel and mark everything in the window as read."""
    engine.open()
    return _state(engine)


@router.post("/close", response_model=ChatStateResponse)
async def close_chat(engine: ChatEngine = Depends(get_chat_engine)) -> ChatStateResponse:
    engine.close()
    return _state(engine)


@router.post("/toggle", response_model=ChatStateResponse)
async def toggle_chat(engine: ChatEngine = Depends(get_chat_engine)) -> ChatStateResponse:
    engine.toggle()
    return _state(engine)


@router.post("/navigate", response_model=NavigateResponse)
async def navigate(
    data: ReferenceSchema,
    engine: ChatEngine = Depends(get_chat_engine),
) -> NavigateResponse:
    """Route for a clicked reference; the panel closes."""
    return NavigateResponse(route=engine.navigate_to_reference(_reference(data)))


# ── Lookups ─────────────────────────────────────────────────────────


@router.get("/lookups", response_model=ChatLookupsResponse)
async def lookups(engine: ChatEngine = Depends(get_chat_engine)) -> ChatLookupsResponse:
    catalogs = engine.catalogs

    def items(ref_type: ReferenceType) -> list[CatalogItemSchema]:
        return [CatalogItemSchema(id=i.id, name=i.name) for i in catalogs[ref_type]]

    return ChatLookupsResponse(
        users=[ChatUserSchema(id=u.id, name=u.name, email=u.email) for u in engine.users],
        projects=items(ReferenceType.PROJECT),
        videos=items(ReferenceType.VIDEO),
        scripts=items(ReferenceType.SCRIPT),
        post_productions=items(ReferenceType.POST_PRODUCTION),
    )


@router.post("/lookups/refresh", response_model=ChatLookupsResponse)
async def refresh_lookups(engine: ChatEngine = Depends(get_chat_engine)) -> ChatLookupsResponse:
    await engine.refresh_lookups()
    return await lookups(engine)


# ── Compose and render helpers ──────────────────────────────────────


@router.post("/compose", response_model=ComposeResponse)
async def compose(
    data: ComposeRequest,
    session: Session = Depends(get_current_session),
    engine: ChatEngine = Depends(get_chat_engine),
) -> ComposeResponse:
    """Which picker the text left of the cursor opens, and its candidates."""
    composer = _composer(data, session)
    trigger = composer.trigger
    return ComposeResponse(
        picker=composer.picker,
        query=trigger.query if trigger else "",
        reference_type=composer.reference_type,
        users=[
            ChatUserSchema(id=u.id, name=u.name, email=u.email)
            for u in composer.mention_candidates(engine.users)
        ],
        items=[
            CatalogItemSchema(id=i.id, name=i.name)
            for i in composer.reference_candidates(engine.catalogs)
        ],
    )


@router.post("/compose/select", response_model=ComposeSelectResponse)
async def compose_select(
    data: ComposeSelectRequest,
    session: Session = Depends(get_current_session),
    engine: ChatEngine = Depends(get_chat_engine),
) -> ComposeSelectResponse:
    """Splice the chosen user or entity into the text and record it."""
    composer = _composer(data, session)

    if data.user_id is not None:
        if composer.picker != PICKER_MENTION:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="No mention picker is open")
        user = next((u for u in engine.users if u.id == data.user_id), None)
        if user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown user")
        composer.select_mention(user)
    elif data.item_id is not None:
        if composer.picker != PICKER_REFERENCE or composer.reference_type is None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="No reference picker is open")
        catalog = engine.catalogs[composer.reference_type]
        item = next((i for i in catalog if i.id == data.item_id), None)
        if item is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown item")
        composer.select_reference(item)
    else:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Give either user_id or item_id",
        )

    return ComposeSelectResponse(
        text=composer.text,
        cursor=composer.cursor,
        mentions=[MentionSchema(user_id=m.user_id, user_name=m.user_name) for m in composer.mentions],
        references=[_reference_schema(r) for r in composer.references],
    )


@router.post("/render", response_model=list[MessageSegmentSchema])
async def render(data: RenderRequest) -> list[MessageSegmentSchema]:
    """Split a message body into segments without sending it."""
    references = [_reference(r) for r in data.references]
    return [_segment_schema(s) for s in render_content(data.content, references)]
