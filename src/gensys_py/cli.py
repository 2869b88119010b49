from __future__ import annotations

import dataclasses
import logging
from typing import Annotated, Optional

import numpy as np
import typer

from .config import ForecastModel, ForecastSettings
from .forecast import compute_model_forecast
from .gensys import DEFAULT_STAKE, gensys
from .serialization import load_solution, load_state_space, load_structural_matrices, save_forecast, save_solution

app = typer.Typer(help="gensys rational-expectations solver and forecast tools")


@app.callback()
def configure(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log solver diagnostics")] = False,
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _demo_model(
    sigma: float, beta: float, kappa: float, phi_pi: float, phi_x: float, rho: float
) -> tuple[np.ndarray, ...]:
    # y = [x, pi, i, g, E_t x_{t+1}, E_t pi_{t+1}], eps = [g shock, policy shock]
    g0 = np.array(
        [
            [1.0, 0.0, 1.0 / sigma, -1.0, -1.0, -1.0 / sigma],
            [-kappa, 1.0, 0.0, 0.0, 0.0, -beta],
            [-phi_x, -phi_pi, 1.0, 0.0, 0.0, 0.0],
            [0.0, 0.0, 0.0, 1.0, 0.0, 0.0],
            [1.0, 0.0, 0.0, 0.0, 0.0, 0.0],
            [0.0, 1.0, 0.0, 0.0, 0.0, 0.0],
        ]
    )
    g1 = np.zeros((6, 6))
    g1[3, 3] = rho
    g1[4, 4] = 1.0
    g1[5, 5] = 1.0
    psi = np.zeros((6, 2))
    psi[3, 0] = 1.0
    psi[2, 1] = 1.0
    pi = np.zeros((6, 2))
    pi[4, 0] = 1.0
    pi[5, 1] = 1.0
    return g0, g1, np.zeros(6), psi, pi


def _parse_vector(text: str) -> np.ndarray:
    return np.array([float(item) for item in text.split(",") if item.strip()], dtype=float)


@app.command("demo")
def demo(
    phi_pi: Annotated[float, typer.Option(help="Taylor-rule response to inflation")] = 1.5,
    phi_x: Annotated[float, typer.Option(help="Taylor-rule response to the output gap")] = 0.125,
    rho: Annotated[float, typer.Option(help="Demand shock persistence")] = 0.8,
) -> None:
    g0, g1, c, psi, pi = _demo_model(
        sigma=1.0, beta=0.99, kappa=0.1, phi_pi=phi_pi, phi_x=phi_x, rho=rho
    )
    solution = gensys(g0, g1, c, psi, pi)

    typer.echo(f"eu: {list(solution.eu)} ({solution.reason}), loose: {solution.loose}")
    typer.echo("transition matrix G1:")
    typer.echo(str(np.round(solution.G1, 6)))
    typer.echo("shock impact matrix:")
    typer.echo(str(np.round(solution.impact, 6)))


@app.command("solve")
def solve_cmd(
    structural: Annotated[str, typer.Option(help="JSON file with G0, G1, C, PSI, PI")],
    output: Annotated[str, typer.Option(help="Output solution JSON path")],
    stake: Annotated[float, typer.Option(help="Stability cutoff for generalised eigenvalues")] = DEFAULT_STAKE,
) -> None:
    g0, g1, c, psi, pi = load_structural_matrices(structural)
    solution = gensys(g0, g1, c, psi, pi, stake)
    save_solution(solution, output)
    typer.echo(f"eu: {list(solution.eu)} ({solution.reason}), loose: {solution.loose}")
    typer.echo(f"Solution written to {output}")


@app.command("inspect")
def inspect_cmd(
    solution: Annotated[str, typer.Option(help="Path to saved solution JSON")],
) -> None:
    result = load_solution(solution)
    typer.echo(f"eu: {list(result.eu)} ({result.reason})")
    typer.echo(f"stable roots: {result.n_stable}, unstable roots: {result.n_unstable}")
    typer.echo(f"loose directions: {result.loose}")
    typer.echo("generalised eigenvalue moduli:")
    typer.echo(str(np.abs(result.eigenvalues)))


@app.command("forecast")
def forecast_cmd(
    system: Annotated[str, typer.Option(help="State-space JSON (TTT, RRR, CCC, QQ, ZZ, DD)")],
    output: Annotated[str, typer.Option(help="Output forecast JSON path")],
    settings: Annotated[Optional[str], typer.Option(help="Forecast settings JSON")] = None,
    z0: Annotated[Optional[str], typer.Option(help="Comma-separated initial state")] = None,
    horizon: Annotated[Optional[int], typer.Option(help="Forecast horizon")] = None,
    seed: Annotated[int, typer.Option(help="RNG seed")] = 0,
    kill_shocks: Annotated[bool, typer.Option(help="Forecast with zero shocks")] = False,
    enforce_zlb: Annotated[bool, typer.Option(help="Enforce the zero lower bound")] = False,
    rate_index: Annotated[Optional[int], typer.Option(help="Row of the nominal rate in ZZ")] = None,
    rate_shock_index: Annotated[
        Optional[int], typer.Option(help="Column of the policy shock in RRR")
    ] = None,
) -> None:
    state_space = load_state_space(system)
    base = ForecastSettings.from_json(settings) if settings else ForecastSettings()

    overrides: dict[str, object] = {}
    if horizon is not None:
        overrides["forecast_horizons"] = horizon
    if kill_shocks:
        overrides["forecast_kill_shocks"] = True
    if enforce_zlb:
        overrides["forecast_enforce_zlb"] = True
    forecast_settings = dataclasses.replace(base, **overrides)

    model = ForecastModel(
        settings=forecast_settings,
        observables={} if rate_index is None else {"obs_nominalrate": rate_index},
        exogenous_shocks={} if rate_shock_index is None else {"rm_sh": rate_shock_index},
    )
    initial = _parse_vector(z0) if z0 else np.zeros(state_space.n_states)
    result = compute_model_forecast(
        model, state_space, initial, rng=np.random.default_rng(seed)
    )
    save_forecast(result, output)
    typer.echo(f"Forecast over {result.horizon} periods written to {output}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
