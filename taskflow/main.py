from fastapi import FastAPI

from taskflow.core.logging import setup_logging
from taskflow.core.database import engine, Base
from taskflow.core.exception_handlers import configure_exception_handlers
from taskflow.models import user, workspace, label, task, preference  # noqa: F401  registers tables
from taskflow.routers import health, auth, workspaces, tasks, labels, preferences

setup_logging()

# Init DB
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Taskflow API",
    version="1.0.0"
)

configure_exception_handlers(app)

# Routes
app.include_router(health.router, prefix="/health")
app.include_router(auth.router)
app.include_router(workspaces.router)
app.include_router(tasks.router)
app.include_router(labels.tags_router)
app.include_router(labels.categories_router)
app.include_router(preferences.router)
