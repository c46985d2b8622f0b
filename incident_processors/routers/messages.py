"""
Message intake endpoints.

The bus consumer posts each delivered message here; processing happens in a
background task and failures never reach the caller.
"""

from fastapi import APIRouter, BackgroundTasks, Header, HTTPException, Request

from incident_processors.core.logging import get_logger

log = get_logger(__name__)
router = APIRouter(prefix="/messages")


@router.post("/email", status_code=202)
async def receive_email(request: Request, background_tasks: BackgroundTasks):
    """Queue a JSON or XML email message for sending."""
    body = (await request.body()).decode("utf-8")
    if not body.strip():
        raise HTTPException(status_code=400, detail="Empty message body")

    background_tasks.add_task(request.app.state.email_processor.process, body)
    return {"status": "accepted"}


@router.post("/incident", status_code=202)
async def receive_incident_notification(
    request: Request,
    background_tasks: BackgroundTasks,
    x_routing_key: str | None = Header(default=None),
):
    """Queue an incident lifecycle notification for the incident-org processor."""
    if not x_routing_key:
        raise HTTPException(status_code=400, detail="Missing X-Routing-Key header")

    body = (await request.body()).decode("utf-8")
    log.debug("incident_message_received", routing_key=x_routing_key)
    background_tasks.add_task(request.app.state.incorg_processor.process, body, x_routing_key)
    return {"status": "accepted", "routing_key": x_routing_key}
