"""
Vendor Client Configuration Models

Pydantic models describing the options each vendor client accepts.
Validation happens at client construction, before any network activity,
and failures surface as ParameterError.
"""

from typing import Any, Dict, List, Literal, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from CameraBridge.exceptions import ParameterError
from .vendors import DAHUA_CONFIG, HIKVISION_CONFIG, UNIVIEW_CONFIG

ConfigT = TypeVar("ConfigT", bound="VendorConfig")


class VendorConfig(BaseModel):
    """Options shared by every vendor client"""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        str_strip_whitespace=True,
        extra="ignore",
    )

    host: str = Field(..., min_length=1, description="Platform host name or IP address")
    port: int = Field(443, ge=1, le=65535)
    protocol: Literal["http", "https"] = "https"
    debug: bool = False
    timeout_ms: int = Field(30000, gt=0, description="Per-request deadline in milliseconds")
    reject_unauthorized: bool = Field(False, description="Verify the platform's TLS certificate")

    @field_validator("protocol", mode="before")
    @classmethod
    def normalize_protocol(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @property
    def base_url(self) -> str:
        return f"{self.protocol}://{self.host}:{self.port}"

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0


class HikvisionConfig(VendorConfig):
    """Hikvision Artemis options: HMAC app key/secret pair"""

    port: int = Field(HIKVISION_CONFIG["default_port"], ge=1, le=65535)
    protocol: Literal["http", "https"] = HIKVISION_CONFIG["default_protocol"]
    timeout_ms: int = Field(HIKVISION_CONFIG["default_timeout_ms"], gt=0)

    app_key: str = Field(..., min_length=1)
    app_secret: str = Field(..., min_length=1)

    @field_validator("app_key", mode="before")
    @classmethod
    def coerce_app_key(cls, v: Any) -> Any:
        """App keys are often numeric; the signature always uses the string form"""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class DahuaConfig(VendorConfig):
    """Dahua ICC options: OAuth password grant with an RSA-encrypted password"""

    port: int = Field(DAHUA_CONFIG["default_port"], ge=1, le=65535)
    protocol: Literal["http", "https"] = DAHUA_CONFIG["default_protocol"]
    timeout_ms: int = Field(DAHUA_CONFIG["default_timeout_ms"], gt=0)

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    client_id: str = Field(..., min_length=1)
    client_secret: str = Field(..., min_length=1)


class UniviewConfig(VendorConfig):
    """Uniview VIID options: username/password challenge-response login"""

    port: int = Field(UNIVIEW_CONFIG["default_port"], ge=1, le=65535)
    protocol: Literal["http", "https"] = UNIVIEW_CONFIG["default_protocol"]
    timeout_ms: int = Field(UNIVIEW_CONFIG["default_timeout_ms"], gt=0)

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    default_org: str = Field(UNIVIEW_CONFIG["default_org"], min_length=1)


def _field_name_for(config_cls: Type[VendorConfig], loc_entry: Any) -> str:
    """Map a validation error location (alias or field name) back to the field name"""
    for name, field in config_cls.model_fields.items():
        if loc_entry in (name, field.alias):
            return name
    return str(loc_entry)


def load_config(
    config_cls: Type[ConfigT],
    config: Union[ConfigT, Mapping[str, Any], None] = None,
    **overrides: Any,
) -> ConfigT:
    """
    Build a validated vendor config from a model, a mapping, or keyword options.

    Raises:
        ParameterError: If required options are missing or invalid
    """
    if isinstance(config, config_cls) and not overrides:
        return config

    if config is None and not overrides:
        raise ParameterError("Configuration object cannot be empty", parameter_name="config")

    data: Dict[str, Any] = {}
    if isinstance(config, VendorConfig):
        data.update(config.model_dump())
    elif config is not None:
        if not isinstance(config, Mapping):
            raise ParameterError(
                f"Configuration must be a mapping or {config_cls.__name__}",
                parameter_name="config",
                parameter_value=type(config).__name__,
            )
        data.update(config)
    data.update(overrides)

    try:
        return config_cls.model_validate(data)
    except ValidationError as e:
        missing: List[str] = []
        invalid: List[str] = []
        for error in e.errors():
            field_name = _field_name_for(config_cls, error["loc"][0]) if error["loc"] else "config"
            if error["type"] in ("missing", "string_too_short"):
                missing.append(field_name)
            else:
                invalid.append(field_name)

        first_field: Optional[str] = (missing or invalid or [None])[0]
        if missing:
            message = f"{first_field} parameter cannot be empty"
        else:
            message = f"{first_field} parameter is invalid"

        raise ParameterError(
            message,
            parameter_name=first_field,
            parameter_value=data.get(first_field) if first_field else None,
            missing_fields=missing,
        ) from e
