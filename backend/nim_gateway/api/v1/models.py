import time

from fastapi import APIRouter, Request

from nim_gateway.models.response import ModelCard, ModelList

router = APIRouter()


def _owner(model_id: str) -> str:
    # "deepseek-ai/deepseek-r1" is owned by "deepseek-ai"
    return model_id.split("/", 1)[0] if "/" in model_id else "nvidia"


@router.get("/models")
async def list_models(request: Request):
    model_id = request.app.state.settings.default_model
    catalog = ModelList(
        data=[ModelCard(id=model_id, created=int(time.time()), owned_by=_owner(model_id))]
    )
    return catalog.model_dump()
