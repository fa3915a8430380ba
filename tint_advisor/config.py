"""
Environment-based configuration using Pydantic Settings.
Every field can be overridden with a TINT_-prefixed environment variable or a .env file.
"""

import sys
from functools import lru_cache
from pathlib import Path
from typing import Optional

from loguru import logger
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ROOT = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
	model_config = SettingsConfigDict(
		env_prefix='TINT_',
		env_file='.env',
		env_file_encoding='utf-8',
		case_sensitive=False,
		extra='ignore',
	)

	# Catalog
	catalog_path: str = str(ROOT / 'data' / 'films.json')

	# Recommendation
	missing_context_policy: str = 'prompt'  # prompt | defaults

	# Logging
	log_level: str = 'INFO'

	# MCP server
	mcp_transport: str = 'stdio'  # stdio | streamable-http
	host: str = '127.0.0.1'
	port: int = 8000
	mcp_path: str = '/mcp'

	# UI
	api_url: Optional[str] = None  # Streamlit talks to the API when set, else runs in-process

	@field_validator('log_level')
	@classmethod
	def validate_log_level(cls, v: str) -> str:
		valid = {'TRACE', 'DEBUG', 'INFO', 'SUCCESS', 'WARNING', 'ERROR', 'CRITICAL'}
		if v.upper() not in valid:
			raise ValueError(f"log_level must be one of {sorted(valid)}")
		return v.upper()

	@field_validator('missing_context_policy')
	@classmethod
	def validate_missing_context_policy(cls, v: str) -> str:
		valid = {'prompt', 'defaults'}
		if v.lower() not in valid:
			raise ValueError(f"missing_context_policy must be one of {sorted(valid)}")
		return v.lower()

	@field_validator('mcp_transport')
	@classmethod
	def validate_mcp_transport(cls, v: str) -> str:
		valid = {'stdio', 'streamable-http'}
		if v.lower() not in valid:
			raise ValueError(f"mcp_transport must be one of {sorted(valid)}")
		return v.lower()


@lru_cache
def get_settings() -> Settings:
	return Settings()


def configure_logging(level: str = 'INFO') -> None:
	"""Send all log output to stderr; stdout carries the MCP stdio protocol."""
	logger.remove()
	logger.add(sys.stderr, level=level.upper())
