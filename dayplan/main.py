import logging

from fastapi import FastAPI
from dayplan.config import LOG_LEVEL
from dayplan.database import engine
from dayplan.models import Base
from dayplan.routes import users, tasks, schedule, model

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

# Create database tables
Base.metadata.create_all(bind=engine)

# Create FastAPI app
app = FastAPI(
    title="dayplan API",
    description="Daily slot scheduler with a feedback-trained utility model",
    version="1.0.0"
)

# Include routers
app.include_router(users.router, prefix="/users", tags=["users"])
app.include_router(tasks.router, prefix="/tasks", tags=["tasks"])
app.include_router(schedule.router, prefix="/schedule", tags=["schedule"])
app.include_router(model.router, prefix="/model", tags=["model"])

@app.get("/")
def read_root():
    """Root endpoint with API information"""
    return {
        "message": "Welcome to dayplan API",
        "version": "1.0.0",
        "endpoints": {
            "users": "POST /users/ - Create a profile; GET/PUT /users/me/settings",
            "tasks": "CRUD /tasks/* - Task management",
            "schedule": "GET /schedule/?date= - Stored or freshly calculated plan",
            "calculate": "POST /schedule/calculate - Recalculate a day",
            "preview": "POST /schedule/preview - Stateless scheduling of given tasks",
            "feedback": "POST /schedule/feedback - Kept/moved feedback on plan slots",
            "model": "GET /model/ - Current weights; POST /model/reset"
        },
        "authentication": "X-User-Id header set by the session gateway",
        "swagger_ui": "/docs - Interactive API documentation",
        "redoc": "/redoc - Alternative API documentation"
    }

@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running"}

# This allows running the app directly with: python -m dayplan.main
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("dayplan.main:app", host="0.0.0.0", port=8000, reload=True)
