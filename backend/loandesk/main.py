from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from loandesk.core.config import settings
from loandesk.core.logging import configure_logging
from loandesk.db.session import ping_db
from loandesk.api.routes import bank_applications, leads, performance, teams, whatsapp

configure_logging()

app = FastAPI(title="LoanDesk API")

# CORS middleware for the dashboard frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(performance.router)
app.include_router(leads.router)
app.include_router(bank_applications.router)
app.include_router(teams.router)
app.include_router(whatsapp.router)


@app.get("/health")
def health():
    return {"status": "ok"}

@app.get("/db-health")
def db_health():
    return {"postgres": "ok" if ping_db() else "failed"}
