__all__ = ["SingularMatrixError"]

from dataclasses import dataclass

from ..exceptions import AlgebraError


@dataclass(frozen=True, slots=True)
class SingularMatrixError(AlgebraError):
    rows: int
    columns: int

    def __str__(self):
        return (
            f"Expected an invertible matrix, but found a singular matrix of dimensions "
            f"({self.rows}, {self.columns})"
        )
