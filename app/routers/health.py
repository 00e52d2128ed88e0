"""
Health Check Router
Liveness plus a DynamoDB reachability report
"""
from fastapi import APIRouter
from datetime import datetime
import logging

from botocore.exceptions import ClientError

from app.core.config import settings
from app.db import dynamo

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check():
    """
    Health check endpoint.
    Returns API status.
    """
    return {
        "status": "healthy",
        "service": settings.PROJECT_NAME,
        "timestamp": datetime.utcnow().isoformat()
    }


@router.get("/status")
def dynamodb_status():
    """
    Check that every DynamoDB table the API uses is reachable.
    """
    tables = {
        "users": dynamo.users_table,
        "transactions": dynamo.transactions_table,
        "budgets": dynamo.budgets_table,
        "savings_goals": dynamo.savings_goals_table,
        "counters": dynamo.counters_table,
    }

    report = {}
    for name, table_factory in tables.items():
        table = table_factory()
        try:
            table.scan(Limit=1)
            report[name] = {"name": table.name, "status": "accessible"}
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            report[name] = {"name": table.name, "status": "error", "error": error_code}
            logger.error(f"DynamoDB check failed for {table.name}: {str(e)}")

    connected = all(entry["status"] == "accessible" for entry in report.values())
    return {
        "timestamp": datetime.utcnow().isoformat(),
        "region": settings.DYNAMO_REGION,
        "tables": report,
        "overall_status": "healthy" if connected else "degraded",
    }
