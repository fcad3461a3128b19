from fastapi import FastAPI
from ccal.api.public import router as public_router

app = FastAPI(title="ccal chinese calendar api")
app.include_router(public_router)
