from . import ast
from .assign import assign
from .constant_value import ConstantValue, MatrixValue, ScalarValue, TensorValue
from .differential import differential
from .encoding import decode, encode, from_json, to_json
from .exceptions import (
    AlgebraError,
    AmbiguousContractionError,
    IndexOutOfRangeError,
    ShapeMismatchError,
    UnimplementedError,
    VariantMismatchError,
)
from .inner_prod import inner_prod
from .linalg import DenseMatrix, SingularMatrixError, SparseTensor
from .operators import (
    constant,
    cos,
    det,
    determinant,
    dot,
    exp,
    inverse,
    ln,
    log,
    power,
    sin,
    symbol,
    tan,
    tensor_element,
    tensor_symbol,
    transpose,
)
from .parser import parse_expression
from .size import Size
from .source_code import render_source
from .tex_code import render_tex
from .variables import variable_names
