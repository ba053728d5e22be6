import numpy as np
import pytest

from nonlinoptim import InvalidArgumentError
from nonlinoptim.linsolve import (
    SOLVERS,
    FailureKind,
    LinearSolveError,
    col_piv_householder_qr,
    complete_orthogonal,
    householder_qr,
    ldlt,
    llt,
    lu_full_piv,
    moore_penrose,
    solve,
    svd_bdc,
    try_solve,
)

PERMISSIVE = [
    "lu_full_piv",
    "moore_penrose",
    "col_piv_householder_qr",
    "full_piv_householder_qr",
    "complete_orthogonal",
    "svd_bdc",
    "svd_jacobi",
]


@pytest.mark.parametrize("method", sorted(SOLVERS))
def test_positive_definite_system(method):
    A = np.array([[2.0, -1.0, 0.0], [-1.0, 2.0, -1.0], [0.0, -1.0, 2.0]])
    b = np.array([3.0, 3.0, 4.0])

    x = solve(A, b, method=method)

    assert np.allclose(x, [4.75, 6.5, 5.25], atol=1e-8)


@pytest.mark.parametrize("method", PERMISSIVE + ["householder_qr"])
def test_general_system(method):
    A = np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0], [7.0, 8.0, 10.0]])
    b = np.array([3.0, 3.0, 4.0])

    x = solve(A, b, method=method)

    assert np.allclose(x, [-2.0, 1.0, 1.0], atol=1e-8)


@pytest.mark.parametrize("solver", [llt, ldlt])
def test_cholesky_rejects_non_positive_definite(solver):
    A = np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0], [7.0, 8.0, 10.0]])
    b = np.array([3.0, 3.0, 4.0])

    with pytest.raises(LinearSolveError) as excinfo:
        solver(A, b)

    assert excinfo.value.kind is FailureKind.NOT_POSITIVE_DEFINITE
    assert isinstance(excinfo.value, np.linalg.LinAlgError)


def test_llt_rejects_symmetric_indefinite_but_ldlt_solves_it():
    A = np.array([[1.0, 2.0], [2.0, 1.0]])
    b = np.array([3.0, 3.0])

    with pytest.raises(LinearSolveError):
        llt(A, b)
    assert np.allclose(ldlt(A, b), [1.0, 1.0])


def test_ldlt_zero_pivot_with_coupling_fails():
    with pytest.raises(LinearSolveError) as excinfo:
        ldlt(np.array([[0.0, 1.0], [1.0, 0.0]]), np.array([1.0, 1.0]))
    assert excinfo.value.kind is FailureKind.NOT_POSITIVE_DEFINITE


def test_ldlt_semidefinite_gives_a_solution():
    A = np.array([[1.0, 1.0], [1.0, 1.0]])
    b = np.array([2.0, 2.0])

    x = ldlt(A, b)

    assert np.allclose(A @ x, b)


@pytest.mark.parametrize("solver", [llt, ldlt, moore_penrose])
def test_non_square_is_rejected(solver):
    with pytest.raises(LinearSolveError) as excinfo:
        solver(np.ones((2, 3)), np.ones(2))
    assert excinfo.value.kind is FailureKind.NOT_SQUARE


@pytest.mark.parametrize("method", PERMISSIVE)
def test_singular_consistent_system_is_solved(method):
    A = np.array([[1.0, 1.0], [1.0, 1.0]])
    b = np.array([2.0, 2.0])

    x = solve(A, b, method=method)

    assert np.all(np.isfinite(x))
    assert np.allclose(A @ x, b)


@pytest.mark.parametrize("method", ["moore_penrose", "svd_bdc", "svd_jacobi"])
def test_singular_minimum_norm(method):
    A = np.array([[1.0, 1.0], [1.0, 1.0]])
    b = np.array([2.0, 2.0])

    assert np.allclose(solve(A, b, method=method), [1.0, 1.0])


@pytest.mark.parametrize("method", PERMISSIVE)
def test_singular_inconsistent_system_stays_finite(method):
    A = np.array([[9.0, 17.0, 1.0], [12.0, 18.0, 9.0], [11.0, 13.0, 14.0]])
    b = np.array([18.0, 0.0, 18.0])

    x = solve(A, b, method=method)

    assert np.all(np.isfinite(x))


@pytest.mark.parametrize(
    "solver", [householder_qr, col_piv_householder_qr, complete_orthogonal, svd_bdc]
)
def test_overdetermined_least_squares(solver, rng):
    A = rng.normal(size=(6, 3))
    b = rng.normal(size=6)

    x = solver(A, b)

    expected = np.linalg.lstsq(A, b, rcond=None)[0]
    assert np.allclose(x, expected, atol=1e-8)


def test_underdetermined_complete_orthogonal_is_minimum_norm(rng):
    A = rng.normal(size=(2, 4))
    b = rng.normal(size=2)

    x = complete_orthogonal(A, b)

    assert np.allclose(A @ x, b)
    assert np.allclose(x, np.linalg.pinv(A) @ b, atol=1e-8)


def test_matrix_right_hand_side():
    A = np.array([[4.0, 1.0], [1.0, 3.0]])
    B = np.array([[1.0, 0.0], [0.0, 1.0]])

    X = lu_full_piv(A, B)

    assert X.shape == (2, 2)
    assert np.allclose(X, np.linalg.inv(A))


def test_try_solve_reports_failure_without_raising():
    result = try_solve("llt", np.array([[0.0, 1.0], [1.0, 0.0]]), np.ones(2))

    assert not result.ok
    assert result.x is None
    assert result.failure is FailureKind.NOT_POSITIVE_DEFINITE
    assert "positive definite" in result.message


def test_try_solve_success():
    result = try_solve(lu_full_piv, np.eye(2), np.array([1.0, 2.0]))

    assert result.ok
    assert not result.used_fallback
    assert np.allclose(result.x, [1.0, 2.0])


def test_unknown_solver_name():
    with pytest.raises(InvalidArgumentError):
        solve(np.eye(2), np.ones(2), method="qr_magic")


def test_mismatched_right_hand_side():
    with pytest.raises(InvalidArgumentError):
        lu_full_piv(np.eye(3), np.ones(2))
