"""Activation/loss pairings attached to layers and individual neurons."""

from __future__ import annotations

from dataclasses import dataclass

from . import activations as _activations
from . import losses as _losses
from .activations import Activation
from .losses import Loss


@dataclass(frozen=True)
class Mechanics:
    """An ``(Activation, Loss)`` pair."""

    activation: Activation
    loss: Loss

    @classmethod
    def from_names(cls, activation: str, loss: str = "none") -> "Mechanics":
        return cls(_activations.REGISTRY.get(activation), _losses.REGISTRY.get(loss))

    @property
    def analytic(self) -> bool:
        return self.activation.analytic and self.loss.analytic


DEFAULT_MECHANICS = Mechanics(_activations.IDENTITY, _losses.NONE)


@dataclass(frozen=True)
class MechIndex:
    """Targets a neuron (inside a layer) or a layer (inside a network) by index."""

    i: int
    mechanics: Mechanics


@dataclass(frozen=True)
class MechNetworkIndex:
    """Targets one neuron of one layer of a network."""

    layer: int
    mech_index: MechIndex


__all__ = ["Mechanics", "DEFAULT_MECHANICS", "MechIndex", "MechNetworkIndex"]
