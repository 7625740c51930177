"""Message record carried through the relay.

A RelayMessage is built by the Telegram listener, sits in the relay queue
with its attachment locator still remote, and is rewritten once by the
poll endpoint after the attachment has been materialized. The same model
parses outbound requests posted to /send.
"""

from __future__ import annotations

import json

from pydantic import BaseModel, ConfigDict, Field


class RelayMessage(BaseModel):
    """A chat message in the wire shape the agent reads and writes."""

    model_config = ConfigDict(populate_by_name=True)

    sender: str = Field(default="", alias="user")
    chat_id: str = Field(default="", alias="chatId")
    message_id: str = Field(default="", alias="msgId")
    text: str = ""
    voice_url: str = Field(default="", alias="voiceURL")
    image_url: str = Field(default="", alias="imageURL")
    file_ext: str = Field(default="", alias="fileExt")

    @classmethod
    def from_wire_json(cls, data: str | bytes) -> RelayMessage:
        """Parse a JSON body that uses the wire names only (chatId, msgId, ...)."""
        return cls.model_validate_json(data, by_alias=True, by_name=False)

    @property
    def has_attachment(self) -> bool:
        return bool(self.voice_url or self.image_url)

    def to_wire(self) -> dict[str, str]:
        """Serialize with wire names, omitting empty optional fields.

        chatId and text are always present.
        """
        data = self.model_dump(by_alias=True)
        return {
            key: value
            for key, value in data.items()
            if value or key in ("chatId", "text")
        }

    def to_json(self) -> str:
        return json.dumps(self.to_wire(), ensure_ascii=False)
