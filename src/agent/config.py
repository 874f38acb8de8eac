"""YAML configuration loading and validation.

Configuration file structure (every key is optional):

    command_prefix: "@kb_agent "
    credential_file: "~/.kb-agent/credentials.yaml"
    request_timeout: 30
    experimental_commands: false
    chat_model:
      url: "https://api.openai.com/v1/chat/completions"
      model: "gpt-4o-mini"
      api_key_env: "OPENAI_API_KEY"
      timeout: 120

A missing file yields the defaults. The chat model API key never lives in
the file; it is read from the environment variable named by api_key_env,
after loading a .env file with python-dotenv.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from .errors import ConfigError

DEFAULT_CONFIG_PATH = '~/.kb-agent/config.yaml'


@dataclass
class ChatModelConfig:
    """Settings for the OpenAI-compatible chat model used by the fallback."""
    url: str = 'https://api.openai.com/v1/chat/completions'
    model: str = 'gpt-4o-mini'
    api_key_env: str = 'OPENAI_API_KEY'
    timeout: float = 120

    @property
    def api_key(self) -> Optional[str]:
        return os.getenv(self.api_key_env) or None


@dataclass
class AgentConfig:
    """Top-level agent configuration.

    Attributes:
        command_prefix: Reserved leading token that marks a command
        credential_file: Path of the YAML credential store
        request_timeout: Seconds before a Confluence request is abandoned
        experimental_commands: Enable /pages and /create
        chat_model: Chat model settings for non-command prompts
    """
    command_prefix: str = '@kb_agent '
    credential_file: str = '~/.kb-agent/credentials.yaml'
    request_timeout: float = 30
    experimental_commands: bool = False
    chat_model: ChatModelConfig = field(default_factory=ChatModelConfig)


class ConfigLoader:
    """Handles configuration file loading and validation."""

    STRING_FIELDS = ('command_prefix', 'credential_file')
    CHAT_STRING_FIELDS = ('url', 'model', 'api_key_env')

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> AgentConfig:
        """Load configuration from a YAML file.

        Args:
            config_path: Path to the YAML file (default ~/.kb-agent/config.yaml)

        Returns:
            AgentConfig with defaults applied for absent keys

        Raises:
            ConfigError: If the file is unreadable or a field is invalid
        """
        load_dotenv()

        path = os.path.expanduser(config_path or DEFAULT_CONFIG_PATH)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            if config_path:
                raise ConfigError(f"Configuration file not found at {path}")
            return AgentConfig()
        except OSError as e:
            raise ConfigError(f"Cannot read {path}: {e}")

        try:
            config_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML syntax: {str(e)}")

        if config_dict is None:
            return AgentConfig()

        if not isinstance(config_dict, dict):
            raise ConfigError(
                f"Config must be a YAML dictionary, got {type(config_dict).__name__}"
            )

        return cls._parse_config(config_dict)

    @classmethod
    def _parse_config(cls, config_dict: Dict[str, Any]) -> AgentConfig:
        config = AgentConfig()

        for name in cls.STRING_FIELDS:
            if name in config_dict:
                setattr(config, name, cls._string(config_dict[name], name))
        if not config.command_prefix.strip():
            raise ConfigError("Command prefix cannot be blank", 'command_prefix')

        if 'request_timeout' in config_dict:
            config.request_timeout = cls._positive_number(
                config_dict['request_timeout'], 'request_timeout'
            )

        if 'experimental_commands' in config_dict:
            value = config_dict['experimental_commands']
            if not isinstance(value, bool):
                raise ConfigError(
                    f"Must be a boolean, got {type(value).__name__}",
                    'experimental_commands'
                )
            config.experimental_commands = value

        chat = config_dict.get('chat_model')
        if chat is not None:
            if not isinstance(chat, dict):
                raise ConfigError(
                    f"Must be a dictionary, got {type(chat).__name__}",
                    'chat_model'
                )
            for name in cls.CHAT_STRING_FIELDS:
                if name in chat:
                    setattr(config.chat_model, name, cls._string(chat[name], f'chat_model.{name}'))
            if 'timeout' in chat:
                config.chat_model.timeout = cls._positive_number(chat['timeout'], 'chat_model.timeout')

        return config

    @staticmethod
    def _string(value: Any, field_name: str) -> str:
        if not isinstance(value, str) or not value:
            raise ConfigError(
                f"Must be a non-empty string, got {value!r}",
                field_name
            )
        return value

    @staticmethod
    def _positive_number(value: Any, field_name: str) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            raise ConfigError(
                f"Must be a positive number, got {value!r}",
                field_name
            )
        return value
