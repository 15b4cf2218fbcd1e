# tests/test_config.py
"""
Tests for ProxyConfig construction and validation.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from llm_proxy.config import ProxyConfig, RetryConfig


class TestValidation:
    def test_defaults(self):
        config = ProxyConfig()
        assert config.cache_enabled is False
        assert config.retry == RetryConfig(max_retries=3, backoff_base=1.0)
        assert config.rate_limit is None
        assert config.cost_limit is None
        assert config.filter_function is None

    def test_cache_requires_ttl(self):
        with pytest.raises(ValidationError):
            ProxyConfig(cache_enabled=True)

    def test_retry_needs_at_least_one_attempt(self):
        with pytest.raises(ValidationError):
            RetryConfig(max_retries=0)

    def test_negative_cost_limit_rejected(self):
        with pytest.raises(ValidationError):
            ProxyConfig(cost_limit=-1.0)

    def test_callables_are_excluded_from_dump(self):
        config = ProxyConfig(filter_function=str.lower)
        dumped = config.model_dump()
        assert "filter_function" not in dumped
        assert "on_request" not in dumped


class TestFromDict:
    def test_nested_retry_and_fallbacks(self):
        config = ProxyConfig.from_dict(
            {
                "cache_enabled": True,
                "cache_ttl_seconds": 120,
                "retry": {"max_retries": 5, "backoff_base": 0.5},
                "fallbacks": {"gpt-4": ["gpt-3.5-turbo"]},
                "providers": [
                    {
                        "name": "openai",
                        "api_key": "sk-test",
                        "pricing": {"gpt-4": {"input_per_1k": 0.03, "output_per_1k": 0.06}},
                    }
                ],
            }
        )
        assert config.retry.max_retries == 5
        assert config.fallbacks == {"gpt-4": ["gpt-3.5-turbo"]}
        assert config.providers[0].pricing["gpt-4"].cost(1000, 1000) == pytest.approx(0.09)

    def test_kwargs_override_data(self):
        config = ProxyConfig.from_dict({"cost_limit": 10.0}, cost_limit=50.0)
        assert config.cost_limit == 50.0


class TestFromYaml:
    def test_env_interpolation(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TEST_OPENAI_KEY", "sk-from-env")
        path = tmp_path / "proxy.yaml"
        path.write_text(
            "cache_enabled: true\n"
            "cache_ttl_seconds: 30\n"
            "cost_limit: 50.0\n"
            "rate_limit: 100\n"
            "providers:\n"
            "  - name: openai\n"
            '    api_key: "${TEST_OPENAI_KEY}"\n'
            "fallbacks:\n"
            "  gpt-4: [gpt-3.5-turbo]\n"
        )
        config = ProxyConfig.from_yaml(str(path))
        assert config.providers[0].api_key == "sk-from-env"
        assert config.cost_limit == 50.0
        assert config.rate_limit == 100
        assert config.fallbacks["gpt-4"] == ["gpt-3.5-turbo"]

    def test_missing_env_var_raises(self, tmp_path, monkeypatch):
        monkeypatch.delenv("DEFINITELY_NOT_SET_KEY", raising=False)
        path = tmp_path / "proxy.yaml"
        path.write_text('providers:\n  - name: openai\n    api_key: "${DEFINITELY_NOT_SET_KEY}"\n')
        with pytest.raises(EnvironmentError):
            ProxyConfig.from_yaml(str(path))

    def test_filter_passed_as_kwarg(self, tmp_path):
        path = tmp_path / "proxy.yaml"
        path.write_text("cost_limit: 5\n")
        config = ProxyConfig.from_yaml(str(path), filter_function=str.upper)
        assert config.filter_function("abc") == "ABC"


class TestFromEnv:
    def test_reads_prefixed_variables(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-openai")
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        monkeypatch.setenv("LLM_PROXY_CACHE_ENABLED", "true")
        monkeypatch.setenv("LLM_PROXY_CACHE_TTL_SECONDS", "45")
        monkeypatch.setenv("LLM_PROXY_MAX_RETRIES", "4")
        monkeypatch.setenv("LLM_PROXY_BACKOFF_BASE", "0.25")
        monkeypatch.setenv("LLM_PROXY_RATE_LIMIT", "60")
        monkeypatch.setenv("LLM_PROXY_COST_LIMIT", "12.5")
        monkeypatch.delenv("LLM_PROXY_REDIS_URL", raising=False)

        config = ProxyConfig.from_env()
        assert [p.name for p in config.providers] == ["openai"]
        assert config.cache_enabled is True
        assert config.cache_ttl_seconds == 45.0
        assert config.retry.max_retries == 4
        assert config.retry.backoff_base == 0.25
        assert config.rate_limit == 60
        assert config.cost_limit == 12.5
        assert config.redis_url is None

    def test_empty_environment(self, monkeypatch):
        for var in (
            "OPENAI_API_KEY",
            "ANTHROPIC_API_KEY",
            "LLM_PROXY_CACHE_ENABLED",
            "LLM_PROXY_CACHE_TTL_SECONDS",
            "LLM_PROXY_MAX_RETRIES",
            "LLM_PROXY_BACKOFF_BASE",
            "LLM_PROXY_RATE_LIMIT",
            "LLM_PROXY_COST_LIMIT",
            "LLM_PROXY_REDIS_URL",
        ):
            monkeypatch.delenv(var, raising=False)
        config = ProxyConfig.from_env()
        assert config.providers == []
        assert config.cache_enabled is False
