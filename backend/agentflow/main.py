# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
FastAPI application - AgentFlow workflow execution engine API
Stores workflow definitions and runs executions against them
"""
# Load environment variables from .env file (local development)
from dotenv import load_dotenv
from pathlib import Path as _PathForEnv
_env_path = _PathForEnv(__file__).parent.parent.parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path)

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from agentflow import __version__
from agentflow.api import executions, hooks, workflows
from agentflow.core.config import Config, get_config
from agentflow.core.errors import AgentFlowError, sanitize_error_for_user
from agentflow.core.logging import get_api_logger
from agentflow.engine.actions import ActionDispatcher
from agentflow.engine.executor import WorkflowExecutor
from agentflow.engine.http import create_http_client
from agentflow.engine.lifecycle import ExecutionLifecycle
from agentflow.services.execution_service import ExecutionService
from agentflow.services.workflow_service import WorkflowService
from agentflow.store import create_store

logger = get_api_logger()


def create_app(config: Optional[Config] = None) -> FastAPI:
    """
    Build the API application.

    Runtime objects (store, HTTP client, dispatcher, executor, services) are
    created in the lifespan and stored in app.state for dependency injection.
    """
    config = config or get_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = create_store(config)
        http_client = create_http_client(timeout=config.webhook_timeout)
        dispatcher = ActionDispatcher(http_client, config=config)
        executor = WorkflowExecutor(dispatcher, store, config=config)

        app.state.config = config
        app.state.store = store
        app.state.http_client = http_client
        app.state.workflow_service = WorkflowService(store)
        app.state.execution_service = ExecutionService(
            store, executor, lifecycle=ExecutionLifecycle(store)
        )
        logger.info(
            f"AgentFlow engine started (storage: {config.storage_backend}, "
            f"actions: {', '.join(dispatcher.supported_actions())})"
        )

        try:
            yield
        finally:
            await http_client.aclose()
            logger.info("AgentFlow engine stopped")

    app = FastAPI(
        title="AgentFlow Engine",
        description="Workflow execution engine",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AgentFlowError)
    async def agentflow_error_handler(request: Request, exc: AgentFlowError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "error": "ValidationError",
                "message": "Invalid request body",
                "status_code": 400,
                "details": {"errors": jsonable_errors(exc)},
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {sanitize_error_for_user(exc)}")
        return JSONResponse(
            status_code=500,
            content={
                "error": "InternalServerError",
                "message": "Internal server error",
                "status_code": 500,
                "details": {},
            },
        )

    @app.get("/health")
    async def health():
        """Health check"""
        return {"status": "healthy", "service": "agentflow-engine", "version": __version__}

    app.include_router(workflows.router)
    app.include_router(executions.router)
    app.include_router(hooks.router)

    return app


def jsonable_errors(exc: RequestValidationError) -> list:
    """Field locations and messages only; submitted values stay out of responses"""
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
        for error in exc.errors()
    ]


app = create_app()


if __name__ == "__main__":
    import uvicorn

    config = get_config()
    uvicorn.run(app, host=config.service_host, port=config.service_port)
