from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, FastAPI, Request, Response, status
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from .config import Settings
from .errors import StorageFault
from .logging_utils import annotate, configure_logging, logger, logging_middleware
from .metrics import Metrics
from .models import Message
from .service import MessageService
from .storage import MessageStore, make_engine
from .translator import ErrorTranslatingRoute


# ---------- Pydantic Models ----------


class MessageCreate(BaseModel):
    # shape only; MessageService owns the text rules
    text: Any = Field(default=None, validation_alias=AliasChoices("text", "message"))
    timestamp: Any = None


class MessageUpdate(BaseModel):
    text: Any = Field(default=None, validation_alias=AliasChoices("text", "message"))


class MessageOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    text: str
    created_at: datetime = Field(alias="createdAt")

    @classmethod
    def from_orm_message(cls, msg: Message) -> "MessageOut":
        return cls(id=msg.id, text=msg.text, created_at=msg.created_at)


# ---------- Dependencies ----------


def get_service(request: Request) -> MessageService:
    return request.app.state.service


# ---------- Message routes ----------


router = APIRouter(prefix="/api/messages", route_class=ErrorTranslatingRoute)


@router.post("", response_model=MessageOut, status_code=status.HTTP_201_CREATED)
def create_message(
    request: Request,
    payload: MessageCreate = Body(...),
    service: MessageService = Depends(get_service),
):
    annotate(request, operation="create")
    msg = service.create(payload.text, payload.timestamp)
    annotate(request, message_id=msg.id, result="created")
    return MessageOut.from_orm_message(msg)


@router.get("", response_model=list[MessageOut])
def list_messages(
    request: Request,
    service: MessageService = Depends(get_service),
):
    annotate(request, operation="list")
    rows = service.list()
    annotate(request, result="ok", count=len(rows))
    return [MessageOut.from_orm_message(m) for m in rows]


@router.put("/{message_id}", response_model=MessageOut)
def update_message(
    request: Request,
    message_id: int,
    payload: MessageUpdate = Body(...),
    service: MessageService = Depends(get_service),
):
    annotate(request, operation="update", message_id=message_id)
    msg = service.update(message_id, payload.text)
    annotate(request, result="updated")
    return MessageOut.from_orm_message(msg)


@router.delete("/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_message(
    request: Request,
    message_id: int,
    service: MessageService = Depends(get_service),
):
    annotate(request, operation="delete", message_id=message_id)
    service.remove(message_id)
    annotate(request, result="deleted")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------- Operational routes ----------


ops_router = APIRouter()


@ops_router.get("/health/live")
def health_live():
    # always 200 once running
    return {"status": "ok"}


@ops_router.get("/health/ready")
def health_ready(request: Request):
    try:
        request.app.state.store.ping()
    except StorageFault as exc:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unavailable", "error": exc.message},
        )
    return {"status": "ok"}


@ops_router.get("/metrics")
def metrics(request: Request):
    text = request.app.state.metrics.render()
    return PlainTextResponse(content=text, media_type="text/plain")


# ---------- App factory ----------


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings.LOG_LEVEL)

    store = MessageStore(make_engine(settings))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store.init_db()
        logger.info("message board ready (database=%s)", store.engine.url)
        yield
        store.dispose()

    app = FastAPI(title="Message Board", lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.service = MessageService(store, max_text_length=settings.MAX_TEXT_LENGTH)
    app.state.metrics = Metrics()

    app.middleware("http")(logging_middleware)

    app.include_router(router)
    app.include_router(ops_router)
    return app
