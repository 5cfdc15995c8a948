from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict


class ChatMessage(BaseModel):
    # Extra keys (name, tool_call_id, ...) are forwarded upstream untouched
    model_config = ConfigDict(extra="allow")

    role: str
    content: Union[str, List[Dict[str, Any]], None] = None

    def upstream_payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ChatCompletionRequest(BaseModel):
    messages: List[ChatMessage]
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    stream: Optional[bool] = None

    def upstream_payload(self) -> Dict[str, Any]:
        """Body for the upstream call. Upstream streaming is never requested."""
        return {
            "model": self.model,
            "messages": [m.upstream_payload() for m in self.messages],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "stream": False,
        }
