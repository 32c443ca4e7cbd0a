"""FastAPI application: configuration dialogs and sheet ticket operations."""

import uvicorn
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException, Depends, Body
from pydantic import BaseModel, Field
from typing import Any, Callable, Dict, List, Optional
from sheetjira import __version__
from sheetjira.errors import (
    SheetJiraError,
    NotConfigured,
    AuthFailed,
    TemplateNotFound,
    InvalidMapping,
    TrackerError,
)
from sheetjira.integrations.jira_client import JiraClient
from sheetjira.models.config import AppSettings, AddonConfig, TabSettings, TicketTemplate
from sheetjira.models.mapping import MappingTarget, parse_column_mapping
from sheetjira.models.ticket import RunMode
from sheetjira.sheets.grid import WorkbookFile
from sheetjira.sheets.sync_controller import SheetSyncController
from sheetjira.utils.config_store import ConfigStore
from sheetjira.utils.logger import setup_logging, get_logger
from sheetjira.utils.health import health_checker

ClientFactory = Callable[[AddonConfig], JiraClient]

# Global variables for dependency injection
settings: AppSettings = None
config_store: ConfigStore = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    global settings, config_store

    settings = AppSettings()
    setup_logging(log_level=settings.log_level)

    config_store = ConfigStore(settings.config_path)

    logger.info(f"Starting sheet-jira-sync (config: {settings.config_path}, workbook: {settings.workbook_path})")
    yield
    logger.info("Shutting down sheet-jira-sync")


app = FastAPI(
    title="Sheet Jira Sync",
    description="Create Jira tickets from spreadsheet rows and sync their status back",
    version=__version__,
    lifespan=lifespan
)

logger = get_logger(__name__)


class ConnectionSettingsUpdate(BaseModel):
    jira_url: str = Field(..., alias="jiraUrl")
    jira_email: str = Field(..., alias="jiraEmail")
    # None keeps the stored token
    jira_api_token: Optional[str] = Field(None, alias="jiraApiToken")

    class Config:
        populate_by_name = True


class SheetRunRequest(BaseModel):
    mode: RunMode = Field(default=RunMode.SHEET)
    rows: List[int] = Field(default_factory=list, description="1-based row numbers for selection runs")
    proceed_with_valid: bool = Field(default=False, description="Create the valid rows when some rows are invalid")


class TemplateRunRequest(BaseModel):
    template: str
    rows: List[int] = Field(..., min_length=1)
    proceed_with_valid: bool = Field(default=False)


def get_config_store() -> ConfigStore:
    """Dependency to get the configuration store."""
    return config_store


def get_client_factory() -> ClientFactory:
    """Dependency to get a Jira client factory bound to the current settings."""
    timeout = settings.http_timeout if settings else 30.0
    return lambda config: JiraClient.from_config(config, timeout=timeout)


def get_workbook() -> WorkbookFile:
    """Dependency to get the workbook the sheet operations act on."""
    return WorkbookFile(settings.workbook_path)


def _http_error(error: SheetJiraError) -> HTTPException:
    if isinstance(error, NotConfigured):
        return HTTPException(status_code=412, detail=str(error))
    if isinstance(error, AuthFailed):
        return HTTPException(status_code=401, detail=str(error))
    if isinstance(error, TemplateNotFound):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, InvalidMapping):
        return HTTPException(status_code=422, detail=str(error))
    if isinstance(error, TrackerError):
        return HTTPException(status_code=502, detail=str(error))
    return HTTPException(status_code=400, detail=str(error))


def _load_config(store: ConfigStore) -> AddonConfig:
    try:
        return store.load()
    except InvalidMapping as e:
        logger.error(f"Stored column mapping is invalid: {e}")
        raise _http_error(e)


def _mask_token(token: str) -> Optional[str]:
    if not token:
        return None
    return token[:4] + "..." if len(token) > 8 else "..."


def _settings_view(config: AddonConfig) -> Dict[str, Any]:
    return {
        "jiraUrl": config.jira_url,
        "jiraEmail": config.jira_email,
        "jiraApiToken": _mask_token(config.jira_api_token),
        "configured": config.is_configured
    }


def _open_sheet(workbook: WorkbookFile, tab: str):
    try:
        return workbook.sheet(tab)
    except (KeyError, FileNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e).strip("'\""))


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Sheet Jira Sync API",
        "version": __version__,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return await health_checker.basic_health_check()


@app.get("/health/jira")
async def jira_health_check(
    store: ConfigStore = Depends(get_config_store),
    client_factory: ClientFactory = Depends(get_client_factory)
):
    """Jira connectivity check, cached for a few minutes."""
    cached_result = health_checker.get_cached_health("jira")
    if cached_result:
        return cached_result

    config = _load_config(store)
    async with client_factory(config) as client:
        return await health_checker.check_jira_api(client)


@app.get("/config/settings")
async def read_settings(store: ConfigStore = Depends(get_config_store)):
    """Connection settings with the API token masked."""
    return _settings_view(_load_config(store))


@app.put("/config/settings")
async def update_settings(
    update: ConnectionSettingsUpdate,
    store: ConfigStore = Depends(get_config_store)
):
    """Save connection settings."""
    config = _load_config(store)
    config.jira_url = update.jira_url.strip().rstrip("/")
    config.jira_email = update.jira_email.strip()
    if update.jira_api_token is not None:
        config.jira_api_token = update.jira_api_token.strip()

    store.save(config)
    health_checker.clear()
    logger.info(f"Connection settings updated for {config.jira_url}")
    return _settings_view(config)


@app.get("/config/tabs/{tab}")
async def read_tab_settings(tab: str, store: ConfigStore = Depends(get_config_store)):
    return _load_config(store).tab(tab).model_dump(by_alias=True)


@app.put("/config/tabs/{tab}")
async def update_tab_settings(
    tab: str,
    tab_settings: TabSettings,
    store: ConfigStore = Depends(get_config_store)
):
    config = _load_config(store)
    config.tab_settings[tab] = tab_settings
    store.save(config)
    logger.info(f"Tab settings updated for '{tab}'")
    return tab_settings.model_dump(by_alias=True)


@app.get("/config/mapping")
async def read_mapping(store: ConfigStore = Depends(get_config_store)):
    config = _load_config(store)
    return {column: entry.to_store() for column, entry in config.column_mapping.items()}


@app.put("/config/mapping")
async def update_mapping(
    mapping: Dict[str, Any] = Body(...),
    store: ConfigStore = Depends(get_config_store)
):
    """Replace the column mapping; unknown targets are rejected."""
    config = _load_config(store)
    try:
        config.column_mapping = parse_column_mapping(mapping)
    except InvalidMapping as e:
        logger.warning(f"Rejected column mapping: {e}")
        raise _http_error(e)

    store.save(config)
    logger.info(f"Column mapping updated ({len(config.column_mapping)} columns)")
    return {column: entry.to_store() for column, entry in config.column_mapping.items()}


@app.get("/config/mapping/targets")
async def list_mapping_targets():
    """Targets offered by the mapping dialog."""
    return {
        "targets": [t.value for t in MappingTarget if t != MappingTarget.CUSTOM_FIELD],
        "modifiers": [t.value for t in MappingTarget if t.is_modifier],
        "customField": "customfield_<id>"
    }


@app.get("/config/templates")
async def read_templates(store: ConfigStore = Depends(get_config_store)):
    config = _load_config(store)
    return {name: template.to_store() for name, template in config.ticket_templates.items()}


@app.put("/config/templates/{name}")
async def update_template(
    name: str,
    template: TicketTemplate,
    store: ConfigStore = Depends(get_config_store)
):
    config = _load_config(store)
    config.ticket_templates[name] = template
    store.save(config)
    logger.info(f"Ticket template '{name}' saved")
    return template.to_store()


@app.delete("/config/templates/{name}")
async def delete_template(name: str, store: ConfigStore = Depends(get_config_store)):
    config = _load_config(store)
    if name not in config.ticket_templates:
        raise _http_error(TemplateNotFound(name))
    del config.ticket_templates[name]
    store.save(config)
    logger.info(f"Ticket template '{name}' deleted")
    return {"deleted": name}


@app.post("/auth/test")
async def test_auth(
    store: ConfigStore = Depends(get_config_store),
    client_factory: ClientFactory = Depends(get_client_factory)
):
    """Check the stored credentials against Jira."""
    config = _load_config(store)
    async with client_factory(config) as client:
        try:
            user = await client.test_auth()
        except (NotConfigured, AuthFailed) as e:
            raise _http_error(e)
    return {"success": True, "displayName": user.display_name}


@app.post("/sheets/{tab}/validate")
async def validate_sheet(
    tab: str,
    request: SheetRunRequest,
    store: ConfigStore = Depends(get_config_store),
    client_factory: ClientFactory = Depends(get_client_factory),
    workbook: WorkbookFile = Depends(get_workbook)
):
    """Pre-flight validation of the rows a ticket run would touch."""
    config = _load_config(store)
    sheet = _open_sheet(workbook, tab)
    async with client_factory(config) as client:
        controller = SheetSyncController(config, client, sheet)
        validation = controller.validate_batch(request.mode, request.rows)
    return validation.model_dump()


@app.post("/sheets/{tab}/tickets")
async def create_tickets(
    tab: str,
    request: SheetRunRequest,
    store: ConfigStore = Depends(get_config_store),
    client_factory: ClientFactory = Depends(get_client_factory),
    workbook: WorkbookFile = Depends(get_workbook)
):
    """Create tickets for selected rows or the whole sheet."""
    config = _load_config(store)
    sheet = _open_sheet(workbook, tab)
    async with client_factory(config) as client:
        controller = SheetSyncController(config, client, sheet)
        try:
            report = await controller.create_tickets(
                request.mode,
                request.rows,
                confirm=lambda validation: request.proceed_with_valid
            )
        except NotConfigured as e:
            raise _http_error(e)

    if report.created:
        workbook.save()
    return {**report.model_dump(), "summary": report.summary_text}


@app.post("/sheets/{tab}/tickets/template")
async def create_tickets_from_template(
    tab: str,
    request: TemplateRunRequest,
    store: ConfigStore = Depends(get_config_store),
    client_factory: ClientFactory = Depends(get_client_factory),
    workbook: WorkbookFile = Depends(get_workbook)
):
    """Create tickets for selected rows from a stored template."""
    config = _load_config(store)
    sheet = _open_sheet(workbook, tab)
    async with client_factory(config) as client:
        controller = SheetSyncController(config, client, sheet)
        try:
            report = await controller.create_from_template(
                request.template,
                request.rows,
                confirm=lambda validation: request.proceed_with_valid
            )
        except (NotConfigured, TemplateNotFound) as e:
            raise _http_error(e)

    if report.created:
        workbook.save()
    return {**report.model_dump(), "summary": report.summary_text}


@app.post("/sheets/{tab}/status")
async def sync_status(
    tab: str,
    store: ConfigStore = Depends(get_config_store),
    client_factory: ClientFactory = Depends(get_client_factory),
    workbook: WorkbookFile = Depends(get_workbook)
):
    """Refresh the Status column from Jira."""
    config = _load_config(store)
    sheet = _open_sheet(workbook, tab)
    async with client_factory(config) as client:
        controller = SheetSyncController(config, client, sheet)
        try:
            report = await controller.sync_status()
        except NotConfigured as e:
            raise _http_error(e)

    if report.updated:
        workbook.save()
    return {**report.model_dump(), "summary": report.summary_text}


if __name__ == "__main__":
    # For development - run with uvicorn
    uvicorn.run(
        "sheetjira.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
        log_level="info"
    )
