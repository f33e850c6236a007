"""
Pydantic models for Installation resources.

This module defines type-safe data models for the Installation specification
and status, plus the coarse phase enum shared by every reconciliation step.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from integreatly_operator.constants import (
    DEFAULT_NAMESPACE_PREFIX,
    OPERATOR_LABEL_KEY,
    OPERATOR_LABEL_VALUE,
    OWNER_LABEL_KEY,
)


class StatusPhase(str, Enum):
    """Coarse outcome of a reconciliation pass for a product or installation."""

    NOT_INSTALLED = ""
    AWAITING_OPERATOR = "awaiting operator"
    CREATING = "creating"
    IN_PROGRESS = "in progress"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_pending(self) -> bool:
        """True for phases that converge on their own given more passes."""
        return self in (
            StatusPhase.AWAITING_OPERATOR,
            StatusPhase.CREATING,
            StatusPhase.IN_PROGRESS,
        )


class InstallationSpec(BaseModel):
    """
    Specification for an Installation resource.

    Declares which products to deploy and where the credential secrets
    consumed by the monitoring product live.
    """

    model_config = {"populate_by_name": True}

    products: list[str] = Field(
        default_factory=lambda: ["monitoring"],
        description="Products to install, reconciled in declared order",
    )
    smtp_secret: str = Field(
        "", alias="smtpSecret", description="Name of the SMTP credentials secret"
    )
    pagerduty_secret: str = Field(
        "",
        alias="pagerDutySecret",
        description="Name of the PagerDuty credentials secret",
    )
    deadmanssnitch_secret: str = Field(
        "",
        alias="deadMansSnitchSecret",
        description="Name of the Dead Man's Snitch credentials secret",
    )
    namespace_prefix: str = Field(
        DEFAULT_NAMESPACE_PREFIX,
        alias="namespacePrefix",
        description="Prefix applied to every product namespace",
    )
    use_cluster_storage: str = Field(
        "",
        alias="useClusterStorage",
        description="Whether products should use in-cluster storage",
    )

    @field_validator("products")
    @classmethod
    def validate_products(cls, v):
        if len(set(v)) != len(v):
            raise ValueError("products must not contain duplicates")
        return v


class Installation(BaseModel):
    """An Installation as seen by a single reconciliation pass."""

    name: str
    namespace: str
    uid: str
    spec: InstallationSpec = Field(default_factory=InstallationSpec)

    @classmethod
    def from_resource(
        cls, name: str, namespace: str, meta: Any, spec: Any
    ) -> "Installation":
        """Build from the arguments kopf hands to a handler."""
        return cls(
            name=name,
            namespace=namespace,
            uid=str((meta or {}).get("uid", "")),
            spec=InstallationSpec.model_validate(dict(spec or {})),
        )

    @classmethod
    def from_body(cls, body: dict[str, Any]) -> "Installation":
        metadata = body.get("metadata", {})
        return cls.from_resource(
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace", ""),
            meta=metadata,
            spec=body.get("spec", {}),
        )

    def owner_labels(self) -> dict[str, str]:
        """Labels correlating a created resource to this installation."""
        return {
            OWNER_LABEL_KEY: self.uid,
            OPERATOR_LABEL_KEY: OPERATOR_LABEL_VALUE,
        }


class ProductStatus(BaseModel):
    """Status of one product within an Installation."""

    model_config = {"populate_by_name": True}

    phase: StatusPhase = Field(StatusPhase.NOT_INSTALLED)
    message: str = Field("", description="Last error message, empty on success")


class InstallationStatus(BaseModel):
    """Status sub-object written back to the Installation after each pass."""

    model_config = {"populate_by_name": True}

    phase: StatusPhase = Field(StatusPhase.NOT_INSTALLED)
    message: str = Field("")
    products: dict[str, ProductStatus] = Field(default_factory=dict)
    last_error: str = Field("", alias="lastError")
    last_reconcile_time: str | None = Field(None, alias="lastReconcileTime")
    conditions: list[dict[str, Any]] = Field(default_factory=list)

    def to_patch(self) -> dict[str, Any]:
        """Serialize using the camelCase field names of the CRD."""
        return self.model_dump(by_alias=True, mode="json")
