"""Handles all user-facing configuration actions."""

import json
import os

from askgpt.globals import CONFIG_FILE


class Config:
    """User-facing configuration variables"""

    def __init__(self):
        self.models: list[dict] = [
            {
                "alias": "default",
                "name": "deepseek-v3",
                "endpoint": "https://dashscope.aliyuncs.com/compatible-mode/v1",
            }
        ]
        # Default values
        self.active_model: str = "default"
        self.context_length: int = 131072
        self.refresh_rate: int = 30
        self.rich_code_theme: str = "monokai"
        self.word_wrap: int = 180
        self.seed: int | None = 1
        self.request_timeout: float = 600.0
        self.system_prompt: str = ""

    def active(self) -> dict:
        """Return the currently active model profile."""
        for m in self.models:
            if m["alias"] == self.active_model:
                return m
        return self.models[0]

    def find(self, alias: str) -> dict | None:
        """Return the profile registered under alias, if any."""
        return next((m for m in self.models if m["alias"] == alias), None)

    def save(self):
        """Saves any config changes to the config file."""
        with open(CONFIG_FILE, "w", encoding="utf-8") as f:
            json.dump(self.__dict__, f, indent=2)

    def load(self):
        """Loads the config file."""
        if not os.path.exists(CONFIG_FILE):
            self.save()
        with open(CONFIG_FILE, "r", encoding="utf-8") as f:
            data = json.load(f)
        for key, val in data.items():
            setattr(self, key, val)

    @property
    def endpoint(self) -> str:
        """Returns the API endpoint for use in Conversation"""
        return self.active()["endpoint"]

    @property
    def model_name(self) -> str:
        """Returns the model name for use in Conversation"""
        return self.active()["name"]

    @property
    def alias_name(self) -> str:
        """Returns the profile name for the header and settings chart"""
        return self.active()["alias"]
