from dataclasses import dataclass, field, replace
from typing import Any, ClassVar, Dict, FrozenSet, Iterable, Optional, cast

import os
import yaml

from .commons import USER_AGENT


# ---- Immutable sections; built once at startup and shared read-only ----

@dataclass(frozen=True)
class CheckerConfig:
    accepted_status_codes: FrozenSet[int] = frozenset({200})
    timeout_s: float = 10.0
    retry_count: int = 2
    max_redirects: int = 10
    max_concurrent_checks: int = 100
    user_agent: str = USER_AGENT
    verify_tls: bool = False


@dataclass(frozen=True)
class OutputConfig:
    directory: str = "."
    active_file: str = "active_domains.txt"
    inactive_file: str = "inactive_domains.txt"


@dataclass(frozen=True)
class CounterConfig:
    enable: bool = True
    interval_s: int = 60


def parse_status_codes(text: str) -> FrozenSet[int]:
    """Parse a comma-separated list of HTTP status codes.

    Args:
        text: Raw value such as ``"200,301"``.

    Returns:
        FrozenSet[int]: The accepted codes.

    Raises:
        ValueError: On an empty or non-integer entry, or a code outside 100..599.
    """
    codes: set[int] = set()
    for raw in text.split(","):
        entry: str = raw.strip()
        try:
            code: int = int(entry)
        except ValueError:
            raise ValueError(f"Invalid status code {entry!r} in {text!r}") from None
        if not 100 <= code <= 599:
            raise ValueError(f"Status code {code} out of range 100-599")
        codes.add(code)
    return frozenset(codes)


@dataclass(frozen=True)
class Config:
    DEFAULT_PATH: ClassVar[str] = "config.yaml"

    checker: CheckerConfig = field(default_factory=CheckerConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    counter: CounterConfig = field(default_factory=CounterConfig)

    @property
    def active_path(self) -> str:
        return os.path.join(self.output.directory, self.output.active_file)

    @property
    def inactive_path(self) -> str:
        return os.path.join(self.output.directory, self.output.inactive_file)

    def with_overrides(
        self,
        accepted_status_codes: Optional[Iterable[int]] = None,
        timeout_s: Optional[float] = None,
        retry_count: Optional[int] = None,
        max_concurrent_checks: Optional[int] = None,
        output_directory: Optional[str] = None,
    ) -> "Config":
        """Return a copy with command-line overrides applied."""
        checker: CheckerConfig = self.checker
        if accepted_status_codes is not None:
            checker = replace(checker, accepted_status_codes=frozenset(accepted_status_codes))
        if timeout_s is not None:
            checker = replace(checker, timeout_s=float(timeout_s))
        if retry_count is not None:
            checker = replace(checker, retry_count=int(retry_count))
        if max_concurrent_checks is not None:
            checker = replace(checker, max_concurrent_checks=int(max_concurrent_checks))
        output: OutputConfig = self.output
        if output_directory is not None:
            output = replace(output, directory=output_directory)
        config: Config = replace(self, checker=checker, output=output)
        config.validate()
        return config

    def validate(self) -> None:
        c: CheckerConfig = self.checker
        if not c.accepted_status_codes:
            raise ValueError("checker.accepted_status_codes must not be empty")
        if c.timeout_s <= 0:
            raise ValueError("checker.timeout_s must be positive")
        if c.retry_count < 1:
            raise ValueError("checker.retry_count must be at least 1")
        if c.max_redirects < 0:
            raise ValueError("checker.max_redirects must not be negative")
        if c.max_concurrent_checks < 1:
            raise ValueError("checker.max_concurrent_checks must be at least 1")
        if self.counter.interval_s <= 0:
            raise ValueError("counter.interval_s must be positive")

    # ---- Loader helpers ----
    @staticmethod
    def _optional_dict(d: Dict[str, Any], key: str) -> Dict[str, Any]:
        if key not in d or d[key] is None:
            return {}
        if not isinstance(d[key], dict):
            raise ValueError(f"Invalid '{key}' section in config file")
        return cast(Dict[str, Any], d[key])

    @staticmethod
    def _status_codes(value: Any) -> FrozenSet[int]:
        if isinstance(value, str):
            return parse_status_codes(value)
        if isinstance(value, int) and not isinstance(value, bool):
            return parse_status_codes(str(value))
        if isinstance(value, list):
            return parse_status_codes(",".join(str(v) for v in value))
        raise ValueError("checker.accepted_status_codes must be a list or comma-separated string")

    @staticmethod
    def load(path: Optional[str] = None) -> "Config":
        """Load configuration from YAML, falling back to defaults.

        A missing default file is not an error; a missing explicit path is.
        """
        cfg_path: str = path or Config.DEFAULT_PATH
        if not os.path.exists(cfg_path):
            if path:
                raise FileNotFoundError(f"Config file not found: {cfg_path}")
            return Config()

        with open(cfg_path, "r", encoding="utf-8") as f:
            raw_any: Any = yaml.safe_load(f) or {}
        if not isinstance(raw_any, dict):
            raise ValueError("Top-level YAML structure must be a mapping")
        raw: Dict[str, Any] = cast(Dict[str, Any], raw_any)

        # ---- Checker ----
        checker_raw: Dict[str, Any] = Config._optional_dict(raw, "checker")
        defaults: CheckerConfig = CheckerConfig()
        try:
            checker = CheckerConfig(
                accepted_status_codes=(
                    Config._status_codes(checker_raw["accepted_status_codes"])
                    if "accepted_status_codes" in checker_raw
                    else defaults.accepted_status_codes
                ),
                timeout_s=float(checker_raw.get("timeout_s", defaults.timeout_s)),
                retry_count=int(checker_raw.get("retry_count", defaults.retry_count)),
                max_redirects=int(checker_raw.get("max_redirects", defaults.max_redirects)),
                max_concurrent_checks=int(
                    checker_raw.get("max_concurrent_checks", defaults.max_concurrent_checks)
                ),
                user_agent=str(checker_raw.get("user_agent", defaults.user_agent)),
                verify_tls=bool(checker_raw.get("verify_tls", defaults.verify_tls)),
            )
        except TypeError as e:
            raise ValueError(f"Invalid value in 'checker' section: {e}") from e

        # ---- Output ----
        output_raw: Dict[str, Any] = Config._optional_dict(raw, "output")
        out_defaults: OutputConfig = OutputConfig()
        output = OutputConfig(
            directory=str(output_raw.get("directory", out_defaults.directory)),
            active_file=str(output_raw.get("active_file", out_defaults.active_file)),
            inactive_file=str(output_raw.get("inactive_file", out_defaults.inactive_file)),
        )

        # ---- Counter ----
        counter_raw: Dict[str, Any] = Config._optional_dict(raw, "counter")
        cnt_defaults: CounterConfig = CounterConfig()
        try:
            counter = CounterConfig(
                enable=bool(counter_raw.get("enable", cnt_defaults.enable)),
                interval_s=int(counter_raw.get("interval_s", cnt_defaults.interval_s)),
            )
        except TypeError as e:
            raise ValueError(f"Invalid value in 'counter' section: {e}") from e

        config = Config(checker=checker, output=output, counter=counter)
        config.validate()
        return config
