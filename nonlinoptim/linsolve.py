"""Dense linear solves ``A x = b`` through a choice of decompositions.

Two families behave differently on awkward input:

* Cholesky solvers (``llt``, ``ldlt``) and ``moore_penrose`` raise
  :class:`LinearSolveError` when ``A`` is not square, not symmetric or not
  positive definite in the sense of the decomposition.
* Pivoting, QR and SVD solvers never signal on rank deficiency. They return
  a basic, least-squares or minimum-norm solution, and a singular system may
  silently produce large or non-finite entries (``householder_qr``). Callers
  that care about conditioning must check it themselves.

All solvers accept ``b`` as a vector or as a matrix of right-hand sides and
are pure NumPy.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union

import numpy as np

from .core import Array, InvalidArgumentError

Solver = Callable[[Array, Array], Array]

_EPS = np.finfo(float).eps
_SYMMETRY_PRECISION = 1e-12
_MAX_JACOBI_SWEEPS = 60


class FailureKind(Enum):
    """Reason a solve was refused."""

    NOT_SQUARE = "not_square"
    NOT_POSITIVE_DEFINITE = "not_positive_definite"


class LinearSolveError(np.linalg.LinAlgError):
    """Recoverable failure of a solver, tagged with a :class:`FailureKind`."""

    def __init__(self, kind: FailureKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind


@dataclass
class SolveResult:
    """Outcome of :func:`try_solve`; ``x`` is ``None`` when ``failure`` is set."""

    x: Optional[Array]
    failure: Optional[FailureKind] = None
    message: str = ""
    used_fallback: bool = False

    @property
    def ok(self) -> bool:
        return self.failure is None


def _prepare(A: Array, b: Array) -> tuple[Array, Array, bool]:
    mat = np.array(A, dtype=float)
    rhs = np.array(b, dtype=float)
    if mat.ndim != 2:
        raise InvalidArgumentError(f"A must be 2-D, got shape {mat.shape}")
    if rhs.ndim not in (1, 2) or rhs.shape[0] != mat.shape[0]:
        raise InvalidArgumentError(
            f"b with shape {rhs.shape} does not match A with shape {mat.shape}"
        )
    vector = rhs.ndim == 1
    if vector:
        rhs = rhs.reshape(-1, 1)
    return mat, rhs, vector


def _finish(x: Array, vector: bool) -> Array:
    return x[:, 0] if vector else x


def _require_square(mat: Array) -> None:
    if mat.shape[0] != mat.shape[1]:
        raise LinearSolveError(FailureKind.NOT_SQUARE, "A is not square!")


def _require_symmetric(mat: Array) -> None:
    diff = np.linalg.norm(mat - mat.T)
    scale = np.linalg.norm(mat)
    if not diff <= _SYMMETRY_PRECISION * scale:
        raise LinearSolveError(
            FailureKind.NOT_POSITIVE_DEFINITE,
            "Matrix A appears not to be positive definite!",
        )


def _solve_upper(r: Array, c: Array) -> Array:
    n = r.shape[0]
    x = np.zeros((n, c.shape[1]), dtype=float)
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        for k in range(n - 1, -1, -1):
            x[k] = (c[k] - r[k, k + 1:] @ x[k + 1:]) / r[k, k]
    return x


def _solve_lower(lower: Array, c: Array, unit: bool = False) -> Array:
    n = lower.shape[0]
    x = np.zeros((n, c.shape[1]), dtype=float)
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        for k in range(n):
            x[k] = c[k] - lower[k, :k] @ x[:k]
            if not unit:
                x[k] = x[k] / lower[k, k]
    return x


# -- LU --------------------------------------------------------------------


def _full_piv_lu(mat: Array) -> tuple[Array, Array, Array, int]:
    lu = mat.copy()
    m, n = lu.shape
    rows = np.arange(m)
    cols = np.arange(n)
    size = min(m, n)
    threshold = 0.0
    rank = size
    for k in range(size):
        corner = np.abs(lu[k:, k:])
        i, j = np.unravel_index(int(np.argmax(corner)), corner.shape)
        pivot = corner[i, j]
        if k == 0:
            threshold = _EPS * size * pivot
        if pivot == 0.0 or pivot <= threshold:
            rank = k
            break
        i += k
        j += k
        lu[[k, i], :] = lu[[i, k], :]
        rows[[k, i]] = rows[[i, k]]
        lu[:, [k, j]] = lu[:, [j, k]]
        cols[[k, j]] = cols[[j, k]]
        lu[k + 1:, k] /= lu[k, k]
        lu[k + 1:, k + 1:] -= np.outer(lu[k + 1:, k], lu[k, k + 1:])
    return lu, rows, cols, rank


def lu_full_piv(A: Array, b: Array) -> Array:
    """LU with complete pivoting; free variables are zero when A is rank deficient."""
    mat, rhs, vector = _prepare(A, b)
    lu, rows, cols, rank = _full_piv_lu(mat)
    c = rhs[rows].copy()
    for k in range(rank):
        c[k + 1:] -= np.outer(lu[k + 1:, k], c[k])
    z = np.zeros((mat.shape[1], rhs.shape[1]), dtype=float)
    z[:rank] = _solve_upper(lu[:rank, :rank], c[:rank])
    x = np.empty_like(z)
    x[cols] = z
    return _finish(x, vector)


def moore_penrose(A: Array, b: Array) -> Array:
    """Pseudo-inverse solve; A must be square."""
    mat, rhs, vector = _prepare(A, b)
    _require_square(mat)
    return _finish(np.linalg.pinv(mat) @ rhs, vector)


# -- QR --------------------------------------------------------------------


def _householder(vec: Array) -> tuple[Array, float]:
    v = vec.copy()
    norm = np.linalg.norm(v)
    if norm == 0.0:
        return v, 0.0
    alpha = -norm if v[0] >= 0 else norm
    v[0] -= alpha
    vv = float(v @ v)
    return v, (2.0 / vv if vv > 0 else 0.0)


def _col_piv_qr(mat: Array) -> tuple[Array, Array, list, int]:
    r = mat.copy()
    m, n = r.shape
    perm = np.arange(n)
    reflectors: list[tuple[int, Array, float]] = []
    norms = np.linalg.norm(r, axis=0)
    threshold = _EPS * max(m, n) * (norms.max() if norms.size else 0.0)
    rank = 0
    for k in range(min(m, n)):
        norms = np.linalg.norm(r[k:, k:], axis=0)
        j = int(np.argmax(norms))
        if norms[j] == 0.0 or norms[j] <= threshold:
            break
        j += k
        r[:, [k, j]] = r[:, [j, k]]
        perm[[k, j]] = perm[[j, k]]
        v, beta = _householder(r[k:, k])
        r[k:, k:] -= beta * np.outer(v, v @ r[k:, k:])
        reflectors.append((k, v, beta))
        rank += 1
    return r, perm, reflectors, rank


def _apply_qt(reflectors: list, rhs: Array) -> Array:
    c = rhs.copy()
    for k, v, beta in reflectors:
        c[k:] -= beta * np.outer(v, v @ c[k:])
    return c


def _pivoted_qr_solve(mat: Array, rhs: Array) -> Array:
    r, perm, reflectors, rank = _col_piv_qr(mat)
    c = _apply_qt(reflectors, rhs)
    z = np.zeros((mat.shape[1], rhs.shape[1]), dtype=float)
    z[:rank] = _solve_upper(r[:rank, :rank], c[:rank])
    x = np.empty_like(z)
    x[perm] = z
    return x


def householder_qr(A: Array, b: Array) -> Array:
    """Plain Householder QR; not rank revealing."""
    mat, rhs, vector = _prepare(A, b)
    q, r = np.linalg.qr(mat)
    k = min(mat.shape)
    z = np.zeros((mat.shape[1], rhs.shape[1]), dtype=float)
    z[:k] = _solve_upper(r[:, :k], q.T @ rhs)
    return _finish(z, vector)


def col_piv_householder_qr(A: Array, b: Array) -> Array:
    """Householder QR with column pivoting; basic solution on rank deficiency."""
    mat, rhs, vector = _prepare(A, b)
    return _finish(_pivoted_qr_solve(mat, rhs), vector)


def full_piv_householder_qr(A: Array, b: Array) -> Array:
    """Column-pivoted QR after ordering rows by decreasing magnitude."""
    mat, rhs, vector = _prepare(A, b)
    order = np.argsort(-np.abs(mat).max(axis=1), kind="stable")
    return _finish(_pivoted_qr_solve(mat[order], rhs[order]), vector)


def complete_orthogonal(A: Array, b: Array) -> Array:
    """Complete orthogonal decomposition; minimum-norm least-squares solution."""
    mat, rhs, vector = _prepare(A, b)
    r, perm, reflectors, rank = _col_piv_qr(mat)
    z = np.zeros((mat.shape[1], rhs.shape[1]), dtype=float)
    if rank:
        c = _apply_qt(reflectors, rhs)
        # R[:rank] = T^T Z^T with Z orthonormal, so Z w is the minimum-norm solution
        zmat, tmat = np.linalg.qr(r[:rank, :].T)
        z = zmat @ _solve_lower(tmat.T, c[:rank])
    x = np.empty_like(z)
    x[perm] = z
    return _finish(x, vector)


# -- Cholesky ----------------------------------------------------------------


def llt(A: Array, b: Array) -> Array:
    """Cholesky ``A = L L^T``; A must be square, symmetric and positive definite."""
    mat, rhs, vector = _prepare(A, b)
    _require_square(mat)
    _require_symmetric(mat)
    try:
        lower = np.linalg.cholesky(mat)
    except np.linalg.LinAlgError as exc:
        raise LinearSolveError(
            FailureKind.NOT_POSITIVE_DEFINITE,
            "Matrix A appears not to be positive definite!",
        ) from exc
    y = _solve_lower(lower, rhs)
    return _finish(_solve_upper(lower.T, y), vector)


def _ldlt(mat: Array) -> tuple[Array, Array, Array]:
    a = mat.copy()
    n = a.shape[0]
    perm = np.arange(n)
    lower = np.eye(n)
    d = np.zeros(n)
    for k in range(n):
        j = k + int(np.argmax(np.abs(np.diag(a)[k:])))
        if j != k:
            a[[k, j], :] = a[[j, k], :]
            a[:, [k, j]] = a[:, [j, k]]
            lower[[k, j], :k] = lower[[j, k], :k]
            perm[[k, j]] = perm[[j, k]]
        pivot = a[k, k]
        col = a[k + 1:, k]
        if pivot == 0.0:
            if np.any(col != 0.0):
                raise LinearSolveError(
                    FailureKind.NOT_POSITIVE_DEFINITE,
                    "Matrix A appears not to be positive definite!",
                )
            continue
        d[k] = pivot
        lower[k + 1:, k] = col / pivot
        a[k + 1:, k + 1:] -= np.outer(col, col) / pivot
    return lower, d, perm


def ldlt(A: Array, b: Array) -> Array:
    """Pivoted ``P A P^T = L D L^T``; tolerates indefinite and semidefinite A.

    Zero pivots contribute a zero component to the solution. A zero pivot with
    a non-zero column below it is reported as not positive definite.
    """
    mat, rhs, vector = _prepare(A, b)
    _require_square(mat)
    _require_symmetric(mat)
    lower, d, perm = _ldlt(mat)
    y = _solve_lower(lower, rhs[perm], unit=True)
    nonzero = d != 0.0
    y[nonzero] /= d[nonzero][:, None]
    y[~nonzero] = 0.0
    z = _solve_upper(lower.T, y)
    x = np.empty_like(z)
    x[perm] = z
    return _finish(x, vector)


# -- SVD ---------------------------------------------------------------------


def _svd_apply(u: Array, s: Array, vt: Array, rhs: Array, shape: tuple[int, int]) -> Array:
    cutoff = _EPS * max(shape) * (s.max() if s.size else 0.0)
    keep = s > cutoff
    inv = np.zeros_like(s)
    inv[keep] = 1.0 / s[keep]
    return vt.T @ (inv[:, None] * (u.T @ rhs))


def _jacobi_svd(mat: Array) -> tuple[Array, Array, Array]:
    u = mat.copy()
    n = u.shape[1]
    v = np.eye(n)
    tol = _EPS * max(mat.shape)
    for _ in range(_MAX_JACOBI_SWEEPS):
        rotated = False
        for p in range(n - 1):
            for q in range(p + 1, n):
                alpha = float(u[:, p] @ u[:, p])
                beta = float(u[:, q] @ u[:, q])
                gamma = float(u[:, p] @ u[:, q])
                if gamma == 0.0 or abs(gamma) <= tol * np.sqrt(alpha * beta):
                    continue
                rotated = True
                zeta = (beta - alpha) / (2.0 * gamma)
                t = (1.0 if zeta >= 0 else -1.0) / (abs(zeta) + np.sqrt(1.0 + zeta * zeta))
                c = 1.0 / np.sqrt(1.0 + t * t)
                s = c * t
                for cols in (u, v):
                    col_p = cols[:, p].copy()
                    cols[:, p] = c * col_p - s * cols[:, q]
                    cols[:, q] = s * col_p + c * cols[:, q]
        if not rotated:
            break
    sigma = np.linalg.norm(u, axis=0)
    scale = np.where(sigma > 0, sigma, 1.0)
    return u / scale, sigma, v.T


def svd_bdc(A: Array, b: Array) -> Array:
    """Divide-and-conquer SVD least-squares solve."""
    mat, rhs, vector = _prepare(A, b)
    u, s, vt = np.linalg.svd(mat, full_matrices=False)
    return _finish(_svd_apply(u, s, vt, rhs, mat.shape), vector)


def svd_jacobi(A: Array, b: Array) -> Array:
    """One-sided Jacobi SVD least-squares solve."""
    mat, rhs, vector = _prepare(A, b)
    u, s, vt = _jacobi_svd(mat)
    return _finish(_svd_apply(u, s, vt, rhs, mat.shape), vector)


SOLVERS: dict[str, Solver] = {
    "lu_full_piv": lu_full_piv,
    "moore_penrose": moore_penrose,
    "householder_qr": householder_qr,
    "col_piv_householder_qr": col_piv_householder_qr,
    "full_piv_householder_qr": full_piv_householder_qr,
    "complete_orthogonal": complete_orthogonal,
    "llt": llt,
    "ldlt": ldlt,
    "svd_bdc": svd_bdc,
    "svd_jacobi": svd_jacobi,
}


def get_solver(method: Union[str, Solver]) -> Solver:
    """Resolve a solver name from :data:`SOLVERS`; callables pass through."""
    if callable(method):
        return method
    try:
        return SOLVERS[method]
    except KeyError:
        raise InvalidArgumentError(
            f"Unknown solver {method!r}; expected one of {sorted(SOLVERS)}"
        ) from None


def solve(A: Array, b: Array, method: Union[str, Solver] = "ldlt") -> Array:
    """Solve ``A x = b`` with the named decomposition."""
    return get_solver(method)(A, b)


def try_solve(method: Union[str, Solver], A: Array, b: Array) -> SolveResult:
    """Like :func:`solve` but reports :class:`LinearSolveError` in the result."""
    solver = get_solver(method)
    try:
        x = solver(A, b)
    except LinearSolveError as exc:
        return SolveResult(x=None, failure=exc.kind, message=str(exc))
    return SolveResult(x=x)


__all__ = [
    "Solver",
    "FailureKind",
    "LinearSolveError",
    "SolveResult",
    "SOLVERS",
    "get_solver",
    "solve",
    "try_solve",
    "lu_full_piv",
    "moore_penrose",
    "householder_qr",
    "col_piv_householder_qr",
    "full_piv_householder_qr",
    "complete_orthogonal",
    "llt",
    "ldlt",
    "svd_bdc",
    "svd_jacobi",
]
