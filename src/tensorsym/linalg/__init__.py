from ._contract import (
    KroneckerDeltaOperand,
    contract,
    generate_rank_combinations,
    kronecker_deltas,
)
from ._dense_matrix import DenseMatrix
from ._exceptions import SingularMatrixError
from ._sparse_tensor import SparseTensor
