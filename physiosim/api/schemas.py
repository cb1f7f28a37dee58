"""Pydantic schemas used by the public API surface."""

from __future__ import annotations

import math
from typing import Any, Dict, List, Literal, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..simulation.context import DebugToggles, Physiology, SubjectProfile
from ..simulation.engine import ScheduledItem, SimulationOptions
from ..simulation.pharmacology import (
    Molecule,
    PDEffect,
    PharmacologyDef,
    PKSpec,
    RateEffect,
    VolumeSpec,
    normalize_mechanism,
)


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


class ErrorPayload(BaseModel):
    """Standard error envelope returned by API endpoints."""

    code: str = Field(..., description="Machine readable error identifier")
    message: str = Field(..., description="Human readable explanation")
    context: Dict[str, Any] = Field(default_factory=dict, description="Additional context")


def _finite_or_none(value: float) -> float | None:
    return value if math.isfinite(value) else None


class Subject(BaseModel):
    weight: float = Field(default=70.0, gt=0.0, description="Body weight in kg")
    sex: Literal["male", "female"] = "male"
    age: float = Field(default=30.0, ge=0.0)
    height: float = Field(default=175.0, gt=0.0, description="Height in cm")

    def to_domain(self) -> SubjectProfile:
        return SubjectProfile(weight=self.weight, sex=self.sex, age=self.age, height=self.height)


class BodyComposition(BaseModel):
    tbw: float | None = Field(default=None, ge=0.0, description="Total body water in litres")
    lean_body_mass: float | None = Field(default=None, ge=0.0, description="Lean body mass in kg")
    bmr: float | None = Field(default=None, ge=0.0, description="Basal metabolic rate in kcal/day")

    def to_domain(self) -> Physiology:
        return Physiology(tbw=self.tbw, lean_body_mass=self.lean_body_mass, bmr=self.bmr)


# ---------------------------------------------------------------------------
# Pharmacology
# ---------------------------------------------------------------------------


class Volume(BaseModel):
    kind: Literal["weight", "tbw", "lbm", "sex-adjusted"] = "weight"
    base_l_kg: float | None = None
    fraction: float | None = None
    male_l_kg: float | None = None
    female_l_kg: float | None = None

    def to_domain(self) -> VolumeSpec:
        return VolumeSpec(**self.model_dump())


class PKParameters(BaseModel):
    model: Literal["one-compartment", "two-compartment", "michaelis-menten", "activity-dependent"] = "one-compartment"
    bioavailability: float = Field(default=1.0, ge=0.0, le=1.0)
    half_life_min: float | None = Field(default=None, gt=0.0)
    elimination_rate: float | None = Field(default=None, gt=0.0)
    absorption_rate: float | None = Field(default=None, gt=0.0)
    k12: float | None = Field(default=None, ge=0.0)
    k21: float | None = Field(default=None, ge=0.0)
    vmax: float | None = Field(default=None, ge=0.0)
    km: float | None = Field(default=None, gt=0.0)
    volume: Volume | None = None

    def to_domain(self) -> PKSpec:
        data = self.model_dump(exclude={"volume"})
        return PKSpec(**data, volume=self.volume.to_domain() if self.volume is not None else None)


class Effect(BaseModel):
    target: str
    mechanism: str = "agonist"
    ec50: float | None = Field(default=None, gt=0.0)
    ki: float | None = Field(default=None, gt=0.0)
    gain: float | None = None
    efficacy: float | None = Field(default=None, ge=0.0)
    unit: Literal["mg/L", "uM", "nM"] = "mg/L"
    hill_n: float | None = Field(default=None, gt=0.0, description="Hill coefficient; defaults to the shared slope")

    @field_validator("mechanism")
    @classmethod
    def _normalise_mechanism(cls, value: str) -> str:
        return normalize_mechanism(value)

    def to_domain(self) -> PDEffect:
        return PDEffect(**self.model_dump())


class Rate(BaseModel):
    target: str
    rate: float

    def to_domain(self) -> RateEffect:
        return RateEffect(target=self.target, rate=self.rate)


class Pharmacology(BaseModel):
    name: str
    molar_mass: float | None = Field(default=None, gt=0.0)
    pk: PKParameters = Field(default_factory=PKParameters)
    pd: List[Effect] = Field(default_factory=list)
    rates: List[Rate] = Field(default_factory=list)
    dose: float | None = Field(default=None, ge=0.0)

    def to_domain(self) -> PharmacologyDef:
        return PharmacologyDef(
            molecule=Molecule(self.name, self.molar_mass),
            pk=self.pk.to_domain(),
            pd=tuple(effect.to_domain() for effect in self.pd),
            rates=tuple(rate.to_domain() for rate in self.rates),
            dose=self.dose,
        )


# ---------------------------------------------------------------------------
# Simulation
# ---------------------------------------------------------------------------


class ScheduleItem(BaseModel):
    id: str
    key: str
    start: float = Field(..., description="Start in minutes from the run origin")
    duration: float = Field(default=5.0, ge=0.0)
    intensity: float = Field(default=1.0, ge=0.0)
    params: Dict[str, Any] = Field(default_factory=dict)
    pharmacology: List[Pharmacology] | None = Field(
        default=None, description="Inline pharmacology overriding the intervention library"
    )

    def to_domain(self) -> ScheduledItem:
        return ScheduledItem(
            id=self.id,
            key=self.key,
            start=self.start,
            duration=self.duration,
            intensity=self.intensity,
            params=dict(self.params),
            pharmacology=tuple(agent.to_domain() for agent in self.pharmacology) if self.pharmacology is not None else None,
        )


class Toggles(BaseModel):
    model_config = ConfigDict(extra="forbid")

    enable_baselines: bool = True
    enable_couplings: bool = True
    enable_homeostasis: bool = True
    enable_receptors: bool = True
    enable_interventions: bool = True
    enable_conditions: bool = True

    def to_domain(self) -> DebugToggles:
        return DebugToggles(**self.model_dump())


class Options(BaseModel):
    subject: Subject = Field(default_factory=Subject)
    physiology: BodyComposition = Field(default_factory=BodyComposition)
    signals: List[str] | None = Field(default=None, description="Signal allowlist; all signals when omitted")
    conditions: Dict[str, Optional[float]] = Field(default_factory=dict)
    baselines: Dict[str, Dict[str, float]] = Field(default_factory=dict)
    couplings: Dict[str, Dict[str, float]] = Field(default_factory=dict)
    receptor_density: Dict[str, float] = Field(default_factory=dict)
    receptor_sensitivity: Dict[str, float] = Field(default_factory=dict)
    transporter_activity: Dict[str, float] = Field(default_factory=dict)
    enzyme_activity: Dict[str, float] = Field(default_factory=dict)
    snapshot: Dict[str, Dict[str, float]] | None = None
    debug: Toggles = Field(default_factory=Toggles)

    def to_domain(self) -> SimulationOptions:
        return SimulationOptions(
            subject=self.subject.to_domain(),
            physiology=self.physiology.to_domain(),
            signals=tuple(self.signals) if self.signals is not None else None,
            conditions=dict(self.conditions),
            baselines=self.baselines,
            couplings=self.couplings,
            receptor_density=self.receptor_density,
            receptor_sensitivity=self.receptor_sensitivity,
            transporter_activity=self.transporter_activity,
            enzyme_activity=self.enzyme_activity,
            snapshot=self.snapshot,
            debug=self.debug.to_domain(),
        )


class SimulationRequest(BaseModel):
    grid: List[float] = Field(..., description="Ascending sample times in minutes")
    items: List[ScheduleItem] = Field(default_factory=list)
    options: Options = Field(default_factory=Options)
    backend: Literal["reference", "vectorized"] | None = None


class SimulationResponse(BaseModel):
    timepoints: Sequence[float]
    series: Mapping[str, Sequence[float]]
    auxiliary_series: Mapping[str, Sequence[float]]
    final_state: Mapping[str, Mapping[str, float]]
    aliases: Mapping[str, Sequence[float]]
    backend: str


# ---------------------------------------------------------------------------
# Catalogues
# ---------------------------------------------------------------------------


class SignalDescriptor(BaseModel):
    key: str
    label: str
    unit: str
    group: str
    initial: float
    minimum: float | None
    maximum: float | None
    reference: float

    @classmethod
    def from_domain(cls, definition: Any) -> "SignalDescriptor":
        return cls(
            key=definition.key,
            label=definition.label,
            unit=definition.unit,
            group=definition.group,
            initial=definition.initial,
            minimum=_finite_or_none(definition.minimum),
            maximum=_finite_or_none(definition.maximum),
            reference=definition.reference,
        )


class AuxiliaryDescriptor(BaseModel):
    key: str
    label: str
    initial: float


class SignalCatalogue(BaseModel):
    signals: List[SignalDescriptor]
    auxiliary: List[AuxiliaryDescriptor]
    aliases: Mapping[str, Tuple[str, str]]


class ConditionDescriptor(BaseModel):
    key: str
    label: str
    param: str
    default: float
    mechanistic: bool


class InterventionDescriptor(BaseModel):
    key: str
    label: str
    category: str
    default_duration: float
    description: str = ""
    parametric: bool = False


# ---------------------------------------------------------------------------
# PK profiles
# ---------------------------------------------------------------------------


class PKProfileRequest(BaseModel):
    intervention: str | None = Field(default=None, description="Library key; ignored when pharmacology is given")
    pharmacology: Pharmacology | None = None
    agent: int = Field(default=0, ge=0, description="Which agent of a multi-agent intervention to profile")
    params: Dict[str, Any] = Field(default_factory=dict)
    dose: float | None = Field(default=None, ge=0.0)
    duration: float = Field(default=1.0, gt=0.0)
    horizon: float = Field(default=1440.0, gt=0.0, le=20160.0)
    intensity: float = Field(default=1.0, ge=0.0)
    subject: Subject = Field(default_factory=Subject)
    physiology: BodyComposition = Field(default_factory=BodyComposition)


class PKProfileResponse(BaseModel):
    name: str
    model: str
    timepoints: Sequence[float]
    central: Sequence[float]
    gut: Sequence[float] | None = None
    peripheral: Sequence[float] | None = None
    summary: Mapping[str, float]
