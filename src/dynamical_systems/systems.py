"""Concrete dynamical systems composing a DMP.

- ExponentialSystem: goal system and (Ijspeert) phase/gating system.
- TimeSystem: linear phase that reaches 1 at t = tau.
- SigmoidSystem: gating that stays near its initial value, then decays.
- SpringDamperSystem: critically damped second-order transformation system.
"""

from typing import Optional

import numpy as np

from .base_system import DynamicalSystem


def _as_times(ts) -> np.ndarray:
    return np.asarray(ts, dtype=float).reshape(-1, 1)


class ExponentialSystem(DynamicalSystem):
    """Exponential convergence towards an attractor.

        xd = alpha (x_attr - x) / tau
        x(t) = x_attr + (x_init - x_attr) exp(-alpha t / tau)
    """

    def __init__(self, tau: float, x_init, x_attr, alpha: float = 6.0):
        super().__init__(tau, x_init)
        self.x_attr = np.atleast_1d(np.asarray(x_attr, dtype=float)).copy()
        if self.x_attr.shape != self.x_init.shape:
            raise ValueError(
                f"x_attr must have shape {self.x_init.shape}, got {self.x_attr.shape}"
            )
        self.alpha = float(alpha)

    def differential_equation(self, x: np.ndarray, xd: Optional[np.ndarray] = None) -> np.ndarray:
        if xd is None:
            xd = np.empty_like(x)
        np.subtract(self.x_attr, x, out=xd)
        np.multiply(xd, self.alpha / self.tau, out=xd)
        return xd

    def analytical_solution(self, ts: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        exp_term = np.exp(-self.alpha * _as_times(ts) / self.tau)
        offset = self.x_init - self.x_attr
        xs = self.x_attr + offset * exp_term
        xds = (-self.alpha / self.tau) * offset * exp_term
        return xs, xds


class TimeSystem(DynamicalSystem):
    """Linear phase system.

    Counts up from 0 to 1 (or down from 1 to 0 if ``count_down``) in
    ``tau`` seconds, then stays constant.
    """

    def __init__(self, tau: float, count_down: bool = False):
        super().__init__(tau, [1.0] if count_down else [0.0])
        self.count_down = count_down

    def differential_equation(self, x: np.ndarray, xd: Optional[np.ndarray] = None) -> np.ndarray:
        if xd is None:
            xd = np.empty_like(x)
        if self.count_down:
            xd[0] = -1.0 / self.tau if x[0] > 0.0 else 0.0
        else:
            xd[0] = 1.0 / self.tau if x[0] < 1.0 else 0.0
        return xd

    def analytical_solution(self, ts: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        ts = _as_times(ts)
        xs = np.clip(ts / self.tau, 0.0, 1.0)
        xds = np.where(ts < self.tau, 1.0 / self.tau, 0.0)
        if self.count_down:
            xs = 1.0 - xs
            xds = -xds
        return xs, xds


class SigmoidSystem(DynamicalSystem):
    """Logistic system with its inflection point at a fixed ratio of tau.

        xd = r x (1 - x / K),   r = max_rate / tau
        x(t) = K / (1 + A exp(-r t)),   A = exp(r t_i),   K = x_init (1 + A)

    With a negative ``max_rate`` the state decays from x_init towards 0,
    dropping fastest at t_i = inflection_ratio * tau.
    """

    def __init__(
        self,
        tau: float,
        x_init=1.0,
        max_rate: float = -20.0,
        inflection_ratio: float = 0.9,
    ):
        super().__init__(tau, x_init)
        if np.any(self.x_init == 0.0):
            raise ValueError("SigmoidSystem requires a non-zero x_init")
        self.max_rate = float(max_rate)
        self.inflection_ratio = float(inflection_ratio)
        self._A = float(np.exp(self.max_rate * self.inflection_ratio))
        self._K = self.x_init * (1.0 + self._A)

    @property
    def _rate(self) -> float:
        return self.max_rate / self.tau

    def differential_equation(self, x: np.ndarray, xd: Optional[np.ndarray] = None) -> np.ndarray:
        if xd is None:
            xd = np.empty_like(x)
        np.divide(x, self._K, out=xd)
        np.subtract(1.0, xd, out=xd)
        np.multiply(xd, x, out=xd)
        np.multiply(xd, self._rate, out=xd)
        return xd

    def analytical_solution(self, ts: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        K = self._K
        xs = K / (1.0 + self._A * np.exp(-self._rate * _as_times(ts)))
        xds = self._rate * xs * (1.0 - xs / K)
        return xs, xds


class SpringDamperSystem(DynamicalSystem):
    """Critically damped spring-damper system with unit mass.

    State is [y, z] with z = tau * yd:

        yd = z / tau
        zd = (-k (y - y_attr) - c z) / tau,   c = alpha,   k = alpha^2 / 4
    """

    def __init__(self, tau: float, y_init, y_attr, alpha: float = 20.0):
        y_init = np.atleast_1d(np.asarray(y_init, dtype=float))
        super().__init__(tau, np.concatenate([y_init, np.zeros_like(y_init)]))
        self.y_attr = np.atleast_1d(np.asarray(y_attr, dtype=float)).copy()
        if self.y_attr.shape != y_init.shape:
            raise ValueError(
                f"y_attr must have shape {y_init.shape}, got {self.y_attr.shape}"
            )
        self.damping_coefficient = float(alpha)
        self.spring_constant = alpha * alpha / 4.0

    @property
    def dim_y(self) -> int:
        return self.y_attr.shape[0]

    def differential_equation(self, x: np.ndarray, xd: Optional[np.ndarray] = None) -> np.ndarray:
        if xd is None:
            xd = np.empty_like(x)
        n = self.dim_y
        y, z = x[:n], x[n:]
        np.divide(z, self.tau, out=xd[:n])
        zd = xd[n:]
        np.subtract(y, self.y_attr, out=zd)
        np.multiply(zd, -self.spring_constant, out=zd)
        zd -= self.damping_coefficient * z
        zd /= self.tau
        return xd

    def analytical_solution(self, ts: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        ts = _as_times(ts)
        n = self.dim_y
        r = -self.damping_coefficient / (2.0 * self.tau)

        # Repeated root r: e(t) = (A + B t) exp(r t), with e = y - y_attr
        A = self.x_init[:n] - self.y_attr
        B = self.x_init[n:] / self.tau - r * A
        exp_rt = np.exp(r * ts)

        e = (A + B * ts) * exp_rt
        ed = (B + r * (A + B * ts)) * exp_rt
        edd = (2.0 * r * B + r * r * (A + B * ts)) * exp_rt

        xs = np.hstack([self.y_attr + e, self.tau * ed])
        xds = np.hstack([ed, self.tau * edd])
        return xs, xds
