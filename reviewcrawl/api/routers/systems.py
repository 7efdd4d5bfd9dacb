from fastapi import APIRouter


def create_systems_router(container_env: dict, scheduler=None):
    """Create systems router with access to container environment config."""
    router = APIRouter(prefix="/systems", tags=["System"])

    @router.get("/health")
    def health():
        body = {"status": "ok"}
        if scheduler is not None:
            next_run = scheduler.next_run_time()
            body["scheduler_running"] = scheduler.running
            body["next_scheduled_run"] = next_run.isoformat() if next_run else None
        return body

    @router.get("/config")
    def get_config():
        """Return current environment configuration values."""
        return {
            "environment": {
                key: str(value) if value is not None else None
                for key, value in container_env.items()
            }
        }

    return router
