"""Debug API Router - only mounted when DEBUG is on."""

from dishka.integrations.fastapi import FromDishka, inject
from fastapi import APIRouter, Request

from src.config.settings import Config
from src.domain.ports.database_inspector import DatabaseInspector
from src.presentation.api.responses import success_response

router = APIRouter(prefix="/debug", tags=["debug"])


@router.get("/list-tables")
@inject
async def list_tables(request: Request, inspector: FromDishka[DatabaseInspector]):
    status, discovered = {}, []
    if inspector.is_configured:
        status = await inspector.test_connection()
        discovered = await inspector.list_all_tables_in_base()
    return success_response(
        request,
        {
            "baseId": Config.AIRTABLE_BASE_ID,
            "authMethod": "Personal Access Token" if Config.AIRTABLE_TOKEN else "None",
            "foundTables": discovered,
            "tableStatus": status,
            "summary": {
                "foundTableCount": len(discovered),
                "accessibleLabels": sum(1 for ok in status.values() if ok),
            },
        },
    )
