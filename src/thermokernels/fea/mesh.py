"""
Structured meshes for driving the kernels.

Elements and boundary facets are grouped by name, the same way physical
groups are kept for meshes read from files.
"""
from __future__ import annotations

from collections import defaultdict

import numpy as np

from thermokernels.fea.node import Node
from thermokernels.fea.finite_elements import (
    CoordinateSystem,
    Edge2,
    FiniteElement,
    Line2,
    PointFacet,
    Tri3,
)


def flatten_groups_in_order(groups: dict[str, list]) -> list:
    """Deterministic flatten of dict-of-lists (sorted by key)."""
    out: list = []
    for k in sorted(groups.keys()):
        out.extend(groups[k])
    return out


class Mesh:
    def __init__(
        self,
        nodes: list[Node],
        elements: dict[str, list[FiniteElement]],
        boundary_elements: dict[str, list[FiniteElement]],
    ) -> None:
        """
        Initialize the Mesh class.

        Args:
            nodes: All nodes; node ``uid`` must equal its position after sorting.
            elements: Interior elements grouped by subdomain name.
            boundary_elements: Boundary facets grouped by boundary name.
        """
        nodes = sorted(nodes, key=lambda node: node.uid)
        if [node.uid for node in nodes] != list(range(len(nodes))):
            raise ValueError("Node indices must be contiguous and zero-based.")
        self.nodes = nodes
        self.elements = dict(elements)
        self.boundary_elements = dict(boundary_elements)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(nodes={self.number_of_nodes}, "
            f"elements={len(self.all_elements)}, boundaries={sorted(self.boundary_elements)})"
        )

    @property
    def number_of_nodes(self) -> int:
        return len(self.nodes)

    @property
    def all_elements(self) -> list[FiniteElement]:
        return flatten_groups_in_order(self.elements)

    def boundary(self, name: str) -> list[FiniteElement]:
        """Facets of the named boundary."""
        try:
            return self.boundary_elements[name]
        except KeyError:
            raise KeyError(
                f"Unknown boundary '{name}'. Available: {sorted(self.boundary_elements)}"
            ) from None

    @property
    def node_coords(self) -> np.ndarray:
        """(n_nodes, 3) coordinates of all nodes."""
        return np.array([node.coords for node in self.nodes], dtype=np.float64)

    @classmethod
    def interval(
        cls,
        n_elements: int,
        x_min: float = 0.0,
        x_max: float = 1.0,
        n_integration_points: int = 2,
        coord_system: CoordinateSystem = CoordinateSystem.XYZ,
    ) -> Mesh:
        """
        Uniform mesh of Line2 elements on [x_min, x_max].

        Boundaries are named ``left`` and ``right``.
        """
        if n_elements < 1:
            raise ValueError(f"n_elements must be positive, got {n_elements}.")
        if x_max <= x_min:
            raise ValueError(f"Empty interval [{x_min}, {x_max}].")

        xs = np.linspace(x_min, x_max, n_elements + 1)
        nodes = [Node(index=i, coords=[x]) for i, x in enumerate(xs)]
        elements = [
            Line2(
                index=e,
                nodes=[nodes[e], nodes[e + 1]],
                n_integration_points=n_integration_points,
                coord_system=coord_system,
            )
            for e in range(n_elements)
        ]
        boundaries = {
            "left": [PointFacet(index=0, node=nodes[0], normal_sign=-1.0, coord_system=coord_system)],
            "right": [PointFacet(index=1, node=nodes[-1], normal_sign=1.0, coord_system=coord_system)],
        }
        return cls(nodes=nodes, elements={"domain": elements}, boundary_elements=boundaries)

    @classmethod
    def rectangle(
        cls,
        nx: int,
        ny: int,
        width: float = 1.0,
        height: float = 1.0,
        coord_system: CoordinateSystem = CoordinateSystem.XYZ,
    ) -> Mesh:
        """
        Structured mesh of Tri3 elements on [0, width] x [0, height].

        Each grid cell is split into two counter-clockwise triangles. Boundaries
        are named ``left``, ``right``, ``bottom`` and ``top``.
        """
        if nx < 1 or ny < 1:
            raise ValueError(f"nx and ny must be positive, got nx={nx}, ny={ny}.")

        xs = np.linspace(0.0, width, nx + 1)
        ys = np.linspace(0.0, height, ny + 1)

        def node_id(i: int, j: int) -> int:
            return j * (nx + 1) + i

        nodes = [
            Node(index=node_id(i, j), coords=[xs[i], ys[j]])
            for j in range(ny + 1)
            for i in range(nx + 1)
        ]

        elements: list[FiniteElement] = []
        for j in range(ny):
            for i in range(nx):
                n00 = nodes[node_id(i, j)]
                n10 = nodes[node_id(i + 1, j)]
                n11 = nodes[node_id(i + 1, j + 1)]
                n01 = nodes[node_id(i, j + 1)]
                elements.append(Tri3(index=len(elements), nodes=[n00, n10, n11], coord_system=coord_system))
                elements.append(Tri3(index=len(elements), nodes=[n00, n11, n01], coord_system=coord_system))

        center = [0.5 * width, 0.5 * height]
        boundaries: dict[str, list[FiniteElement]] = defaultdict(list)
        for i in range(nx):
            boundaries["bottom"].append(
                Edge2(index=i, nodes=[nodes[node_id(i, 0)], nodes[node_id(i + 1, 0)]],
                      inside_point=[xs[i], 0.5 * height], coord_system=coord_system)
            )
            boundaries["top"].append(
                Edge2(index=i, nodes=[nodes[node_id(i, ny)], nodes[node_id(i + 1, ny)]],
                      inside_point=[xs[i], 0.5 * height], coord_system=coord_system)
            )
        for j in range(ny):
            boundaries["left"].append(
                Edge2(index=j, nodes=[nodes[node_id(0, j)], nodes[node_id(0, j + 1)]],
                      inside_point=center, coord_system=coord_system)
            )
            boundaries["right"].append(
                Edge2(index=j, nodes=[nodes[node_id(nx, j)], nodes[node_id(nx, j + 1)]],
                      inside_point=center, coord_system=coord_system)
            )

        return cls(nodes=nodes, elements={"domain": elements}, boundary_elements=dict(boundaries))
