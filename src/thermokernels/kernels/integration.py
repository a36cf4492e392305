"""
Quadrature loops shared by all residual objects.

The loops only see the point-wise interface of a residual object
(``compute_qp_residual``, ``compute_qp_jacobian``,
``compute_qp_off_diag_jacobian``) and integrate it over one element or facet.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt

    from thermokernels.fields import FieldAccessor
    from thermokernels.kernels.base import ResidualObject


def integrate_residual(obj: ResidualObject, fields: FieldAccessor) -> npt.NDArray[np.float64]:
    """
    Local residual ``re[i] = Σ_qp JxW·coord·r(i, qp)``.

    Returns:
        (n_test,) local residual vector.
    """
    q = fields.qdata
    weights = q.jxw * q.coord
    re = np.zeros(q.n_test, dtype=np.float64)
    for i in range(q.n_test):
        for qp in range(q.n_qp):
            re[i] += weights[qp] * obj.compute_qp_residual(fields, i, qp)
    return re


def integrate_jacobian(obj: ResidualObject, fields: FieldAccessor) -> npt.NDArray[np.float64]:
    """
    Local diagonal-block Jacobian ``ke[i, j] = Σ_qp JxW·coord·k(i, j, qp)``.

    Returns:
        (n_test, n_trial) local matrix.
    """
    q = fields.qdata
    weights = q.jxw * q.coord
    ke = np.zeros((q.n_test, q.n_trial), dtype=np.float64)
    for i in range(q.n_test):
        for j in range(q.n_trial):
            for qp in range(q.n_qp):
                ke[i, j] += weights[qp] * obj.compute_qp_jacobian(fields, i, j, qp)
    return ke


def integrate_off_diag_jacobian(
    obj: ResidualObject,
    fields: FieldAccessor,
    jvar: int,
) -> npt.NDArray[np.float64]:
    """
    Local off-diagonal Jacobian block with respect to variable number ``jvar``.

    Returns:
        (n_test, n_trial) local matrix.
    """
    q = fields.qdata
    weights = q.jxw * q.coord
    ke = np.zeros((q.n_test, q.n_trial), dtype=np.float64)
    for i in range(q.n_test):
        for j in range(q.n_trial):
            for qp in range(q.n_qp):
                ke[i, j] += weights[qp] * obj.compute_qp_off_diag_jacobian(fields, jvar, i, j, qp)
    return ke
