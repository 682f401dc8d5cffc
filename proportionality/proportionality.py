# -*- coding: utf-8 -*-

# Built-ins
import warnings, operator
from collections import namedtuple
from itertools import combinations

# External
import numpy as np
import pandas as pd
from scipy.spatial.distance import squareform
from scipy.stats import f as f_distribution

# ==========
# Exceptions
# ==========
class DomainError(ValueError):
    """
    Compositional data contains values outside of the domain of the log-ratio transforms (i.e., negative or missing values)
    """
    pass

# Slope, p-value, and squared correlation of pairwise standardised major axis fits
SMAFit = namedtuple("SMAFit", ["b", "p", "r2"])

# =========
# Utilities
# =========
def assert_acceptable_arguments(query, target, operation="le", message="Invalid option provided.  Please refer to the following for acceptable arguments:"):
    """
    le: operator.le(a, b) : <=
    eq: operator.eq(a, b) : ==
    ge: operator.ge(a, b) : >=
    """
    # Strings and tuples are single options
    if isinstance(query, (str, tuple)) or not hasattr(query, "__iter__"):
        query = [query]
    func_operation = getattr(operator, operation)
    assert func_operation(set(query), set(target)), "{}\n{}".format(message, set(target))

def check_compositional(X, n_dimensions:int=None, acceptable_dimensions:set={1,2}):
    """
    # Description
    Check that 1D and 2D NumPy/Pandas objects are the correct shape and do not contain negative or missing values

    # Parameters
        * X:
            - Compositional data
            (1D): pd.Series or 1D np.array
            (2D): pd.DataFrame or 2D np.array
        * n_dimensions: int
        * acceptable_dimensions: int or set of ints

    # Raises
        * DomainError if `X` contains negative values (checked first) or missing values
    """
    if n_dimensions is None:
        n_dimensions = len(X.shape)
    if not hasattr(acceptable_dimensions, "__iter__"):
        acceptable_dimensions = {acceptable_dimensions}
    assert n_dimensions in acceptable_dimensions, "`X` must be {}".format(" or ".join(map(lambda d: f"{d}D", sorted(acceptable_dimensions))))

    values = _as_float_array(X)
    n_negative = np.sum(values < 0)
    if n_negative:
        raise DomainError("N={} negative values found in `X`".format(n_negative))
    n_missing = np.sum(np.isnan(values))
    if n_missing:
        raise DomainError("N={} missing values found in `X`".format(n_missing))

def _as_float_array(X):
    # pd.NA in nullable dtypes becomes np.nan
    if isinstance(X, (pd.DataFrame, pd.Series)):
        return X.to_numpy(dtype="float64", na_value=np.nan)
    return np.asarray(X, dtype="float64")

def _unpack(X):
    # Float values and the labels of a pandas object (None for NumPy)
    index = None
    components = None
    if isinstance(X, pd.DataFrame):
        index = X.index
        components = X.columns
    elif isinstance(X, pd.Series):
        components = X.index
    return _as_float_array(X), index, components

def _repack(values, index, components):
    if components is None:
        return values
    if values.ndim == 1:
        return pd.Series(values, index=components)
    return pd.DataFrame(values, index=index, columns=components)

def _format_pairwise(data, components, redundant_form, name):
    # Square matrix or condensed upper triangle
    if redundant_form:
        if components is not None:
            data = pd.DataFrame(data, index=components, columns=components)
    else:
        data = squareform(data, checks=False)

        if components is not None:
            components = pd.Index(list(map(frozenset, combinations(components, 2))), name=components.name)
            if components.name is None:
                components.name = name
            data = pd.Series(data, index=components)
    return data

def _quietly(func, *args, **kwargs):
    # 0/0, log(0), and "Degrees of freedom <= 0" give NaN/Inf without warnings
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", RuntimeWarning)
        with np.errstate(divide="ignore", invalid="ignore"):
            return func(*args, **kwargs)

def _covariance(X):
    # Missing values propagate to every pair that includes the column
    return _quietly(lambda: np.atleast_2d(np.cov(X, rowvar=False, ddof=1)))

def _variances(X):
    return _quietly(np.var, X, axis=0, ddof=1)

def pairwise_complete_covariance(X, ddof=1):
    """
    # Description
    Covariance and correlation matrices using pairwise-complete observations.
    For each pair of columns only the rows where both values are present are used and
    the means, covariance, and variances of that pair are computed on those rows.

    # Parameters
        * X: pd.DataFrame or 2D np.array
        * ddof: Delta degrees of freedom for the covariance (ddof=1 for sample covariance)

    # Output
        (covariance, correlation) as 2D np.arrays.
        Pairs with fewer than ddof + 1 shared observations are NaN.

    Pairwise deletion is done by pandas (DataFrame.cov and DataFrame.corr)
    """
    df = pd.DataFrame(_as_float_array(X))
    covariance = _quietly(df.cov, min_periods=ddof + 1, ddof=ddof).to_numpy(dtype="float64")
    correlation = _quietly(df.corr, method="pearson", min_periods=2).to_numpy(dtype="float64")
    return covariance, np.clip(correlation, -1, 1)

# ===========================
# Transforms
# ===========================
def transform_closure(X, checks=False):
    """
    # Description
    Closure (e.g., total sum scaling, relative abundance) that can handle 1D and 2D NumPy and Pandas objects

    # Parameters
        * X:
            - Compositional data
            (1D): pd.Series or 1D np.array
            (2D): pd.DataFrame or 2D np.array
        * checks:
            Raise DomainError if `X` contains negative or missing values
    * Output
        Closure transformed matching input object class. Each composition sums to 1.
        A composition summing to 0 becomes NaN/Inf.
    """
    n_dimensions = len(X.shape)

    if checks:
        check_compositional(X, n_dimensions)

    X, index, components = _unpack(X)

    with np.errstate(divide="ignore", invalid="ignore"):
        X_closure = X/X.sum(axis=-1, keepdims=True)

    return _repack(X_closure, index, components)

# CLR Normalization
def transform_clr(X, checks=False):
    """
    # Description
    Centred log-ratio transform: log of each composition shifted to have mean 0.
    exp(clr(x)) multiplies out to 1 for every composition.

    # Documentation on CLR:
    http://scikit-bio.org/docs/latest/generated/skbio.stats.composition.clr.html#skbio.stats.composition.clr

    # Parameters
        * X:
            - Compositional data
            (1D): pd.Series or 1D np.array
            (2D): pd.DataFrame or 2D np.array
        * checks:
            Raise DomainError if `X` contains negative or missing values

    Zeros are not masked: log(0) = -inf and log of a negative value is NaN and both propagate.
    """
    n_dimensions = len(X.shape)

    if checks:
        check_compositional(X, n_dimensions)

    X, index, components = _unpack(X)

    with np.errstate(divide="ignore", invalid="ignore"):
        X_log = np.log(X)
        X_clr = X_log - X_log.mean(axis=-1, keepdims=True)

    return _repack(X_clr, index, components)

# ========
# Pairwise
# ========
# Pairwise variance log-ratio
def pairwise_vlr(X, checks=False, redundant_form:bool=True):
    """
    # Description
    Pairwise variance log-ratio: element (i,j) is Var(log(X_i/X_j)) over the rows of `X`

    # Parameters
        * X: pd.DataFrame or 2D np.array of compositional data (not log or clr transformed)
        * checks:
            Raise DomainError if `X` contains negative or missing values.
            Only `X` is checked so zeros pass and produce -inf in the log.
        * redundant_form:
            - True: Return output in squareform
            - False: Return the dereplicated VLR
    # Output:
        - Returns Pairwise VLR (symmetric with a diagonal of 0)
            * X -> pd.DataFrame
                - redundant_form: True
                    pd.DataFrame with index and columns equal to X.columns
                - redundant_form: False
                    pd.Series with index as a frozenset of combinations (i.e., list(map(frozenset, combinations(components, 2))))
            * X -> np.array
                - redundant_form: True
                    2D np.array
                - redundant_form: False
                    1D np.array

    Var(log(X_i/X_j)) = Var(log X_i) + Var(log X_j) - 2Cov(log X_i, log X_j)
    ddof=1 for compatibility with propr package in R
    """
    n_dimensions = len(X.shape)
    assert n_dimensions == 2, "`X` must be 2D"
    if checks:
        check_compositional(X, n_dimensions, acceptable_dimensions={2})

    X, index, components = _unpack(X)

    with np.errstate(divide="ignore", invalid="ignore"):
        X_log = np.log(X)
    covariance = _covariance(X_log)
    diagonal = np.diagonal(covariance)
    vlr = -2*covariance + diagonal[:,np.newaxis] + diagonal

    return _format_pairwise(vlr, components, redundant_form, name="vlr")

# Pairwise symmetric phi proportionality
def pairwise_phisym(X, redundant_form:bool=True):
    """
    # Description
    Pairwise symmetric phi: (1 - t)/(1 + t) where t = 2Cov(X_i, X_j)/(Var(X_i) + Var(X_j))

    # Parameters
        * X: pd.DataFrame or 2D np.array of clr transformed compositional data
        * redundant_form:
            - True: Return output in squareform
            - False: Return the dereplicated phisym

    Columns with 0 variance on both sides of a pair give NaN.
    """
    assert len(X.shape) == 2, "`X` must be 2D"
    X, index, components = _unpack(X)

    covariance = _covariance(X)
    variances = np.diagonal(covariance)
    with np.errstate(divide="ignore", invalid="ignore"):
        t = 2*covariance/np.add.outer(variances, variances)
        phisym = (1 - t)/(1 + t)

    return _format_pairwise(phisym, components, redundant_form, name="phisym")

# Pairwise standardised major axis
def pairwise_sma(X):
    """
    # Description
    Standardised major axis fits for every pair of columns in `X` following Warton et al. Biol. Rev. (2006), 81, pp. 259-291

    # Parameters
        * X: pd.DataFrame or 2D np.array of clr transformed compositional data.
             Missing values are handled with pairwise-complete observations.

    # Output
        SMAFit(b, p, r2) where each element is a square matrix labeled by X.columns (if pd.DataFrame):
            * b: slope sign(s_ij) * s_i/s_j where column i is the dependent axis
            * p: p-value of the test that the slope is 1 (F-test with 1 and N-2 degrees of freedom)
            * r2: squared correlation coefficient
    """
    assert len(X.shape) == 2, "`X` must be 2D"
    X, index, components = _unpack(X)
    n, m = X.shape

    covariance, correlation = pairwise_complete_covariance(X, ddof=1)
    variances = np.diagonal(covariance)
    deviations = np.sqrt(variances)

    dof = n - 2
    if dof <= 0:
        warnings.warn("N={} compositions leaves {} residual degrees of freedom.  p-values will be NaN.".format(n, dof))

    with np.errstate(divide="ignore", invalid="ignore"):
        # r_rf2 = cor(X+Y, X-Y)^2
        #       = (var(X) - var(Y))^2  /  ((var(X) + var(Y))^2 - 4cov(X,Y)^2)
        r_rf2 = np.subtract.outer(variances, variances)**2 / (np.add.outer(variances, variances)**2 - 4*covariance**2)

        # 0/0 on the diagonal
        np.fill_diagonal(r_rf2, 0)
        F = r_rf2/(1 - r_rf2) * dof

        slopes = np.sign(correlation) * np.divide.outer(deviations, deviations)

    pvalues = f_distribution.sf(F, 1, dof)

    return SMAFit(
        b=_format_pairwise(slopes, components, True, name="b"),
        p=_format_pairwise(pvalues, components, True, name="p"),
        r2=_format_pairwise(correlation**2, components, True, name="r2"),
    )

def _xlr_and_vlr(X, xlr, vlr):
    # Compute clr and vlr from X or validate precomputed clr and vlr
    components = None
    if X is not None:
        assert all(map(lambda x: x is None, [xlr, vlr])), "If `X` is not None then `xlr` and `vlr` cannot be provided."
        if isinstance(X, pd.DataFrame):
            components = X.columns
        X = _as_float_array(X)
        vlr = pairwise_vlr(X)
        xlr = transform_clr(X)
    else:
        assert all(map(lambda x: x is not None, [xlr, vlr])), "If `X` is None then `xlr` and `vlr` must be provided."
        assert type(xlr) is type(vlr), "`xlr` and `vlr` should be same type (i.e. pd.DataFrame, np.ndarray)"
        if isinstance(xlr, pd.DataFrame):
            assert np.all(xlr.columns == vlr.columns) & np.all(xlr.columns == vlr.index), "`xlr.columns` need to be the same as `vlr.index` and `vlr.columns`"
            components = xlr.columns
        xlr = _as_float_array(xlr)
        vlr = _as_float_array(vlr)
    return xlr, vlr, components

# Pairwise phi proportionality
def pairwise_phi(X=None, xlr=None, vlr=None, symmetrize=False, triangle="lower", redundant_form:bool=True):
    """
    # Description
    Pairwise proportionality `phi` (Lovell et al. 2015): vlr(i,j)/Var(clr(X)_j)

    # Parameters
        * X: pd.DataFrame or 2D np.array of compositional data (rows=samples, columns=components)
        * xlr: pd.DataFrame or 2D np.array of clr transformed compositional data (must be used with `vlr` and not `X`)
        * vlr: pd.DataFrame or 2D np.array of variance log-ratios (must be used with `xlr` and not `X`)
        * symmetrize: Force symmetric matrix
        * triangle: Use lower or upper triangle for reference during symmetrization
        * redundant_form:
            - True: Return output in squareform
            - False: Return the dereplicated phi (upper triangle when not symmetrized)

    phi is not symmetric: element (i,j) is divided by the variance of column j.
    Citation:
    * https://journals.plos.org/ploscompbiol/article?id=10.1371/journal.pcbi.1004075
    """
    xlr, vlr, components = _xlr_and_vlr(X, xlr, vlr)

    n, m = xlr.shape
    variances = _variances(xlr)
    with np.errstate(divide="ignore", invalid="ignore"):
        phis = vlr/variances

    if symmetrize:
        assert_acceptable_arguments(triangle, {"lower", "upper"})
        if triangle == "upper":
            idx_triangle = np.tril_indices(m, -1)
        if triangle == "lower":
            idx_triangle = np.triu_indices(m, 1)
        phis[idx_triangle] = phis.T[idx_triangle]

    return _format_pairwise(phis, components, redundant_form, name="phi")

# Pairwise rho proportionality
def pairwise_rho(X=None, xlr=None, vlr=None, redundant_form:bool=True):
    """
    # Description
    Pairwise proportionality `rho` (Erb et al. 2016): 1 - vlr(i,j)/(Var(clr(X)_i) + Var(clr(X)_j))

    # Parameters
        * X: pd.DataFrame or 2D np.array of compositional data (rows=samples, columns=components)
        * xlr: pd.DataFrame or 2D np.array of clr transformed compositional data (must be used with `vlr` and not `X`)
        * vlr: pd.DataFrame or 2D np.array of variance log-ratios (must be used with `xlr` and not `X`)
        * redundant_form:
            - True: Return output in squareform
            - False: Return the dereplicated rho

    # Output:
        - Returns pairwise rho (symmetric with a diagonal of 1)
            * X -> pd.DataFrame
                - redundant_form: True
                    pd.DataFrame with index and columns equal to X.columns
                - redundant_form: False
                    pd.Series with index as a frozenset of combinations (i.e., list(map(frozenset, combinations(components, 2))))
            * X -> np.array
                - redundant_form: True
                    2D np.array
                - redundant_form: False
                    1D np.array

    On clr data rho equals 2Cov(i,j)/(Var_i + Var_j) so phisym = (1 - rho)/(1 + rho).
    Citation:
    * https://link.springer.com/article/10.1007/s12064-015-0220-8
    """
    xlr, vlr, components = _xlr_and_vlr(X, xlr, vlr)

    variances = _variances(xlr)
    with np.errstate(divide="ignore", invalid="ignore"):
        rhos = 1 - (vlr/np.add.outer(variances, variances))

    return _format_pairwise(rhos, components, redundant_form, name="rho")

# =======================
# Pairwise summary table
# =======================
def pairwise_statistics(X):
    """
    # Description
    Slope, p-value, r2, vlr, phi, and phisym for every pair of columns in `X`

    # Parameters
        * X: pd.DataFrame or 2D np.array of compositional data (not clr transformed).
             np.array columns are labeled by position.

    # Output
        pd.DataFrame with D*(D-1)/2 rows and columns [row, col, b, p, r2, vlr, phi, phisym].
        Pairs come from the lower triangle (row > col) traversed column by column and
        the asymmetric statistics (b, phi) are read at (row, col).

        phisym = (1 + b^2 - 2b*sqrt(r2))/(1 + b^2 + 2b*sqrt(r2))
        phi = 1 + b^2 - 2b*sqrt(r2)
    """
    assert len(X.shape) == 2, "`X` must be 2D"
    if not isinstance(X, pd.DataFrame):
        X = pd.DataFrame(X)
    components = X.columns
    m = components.size
    if m < 2:
        warnings.warn("N={} components in `X`.  At least 2 are needed to compare pairs.".format(m))

    X_clr = transform_clr(X)
    X_sma = pairwise_sma(X_clr)
    X_vlr = pairwise_vlr(X)
    X_phi = pairwise_phi(xlr=X_clr, vlr=X_vlr)
    X_phisym = pairwise_phisym(X_clr)

    idx_col, idx_row = np.triu_indices(m, 1)
    df_pairs = pd.DataFrame({
        "row":pd.Categorical(components[idx_row]),
        "col":pd.Categorical(components[idx_col]),
    })
    for field, data in [
        ("b", X_sma.b),
        ("p", X_sma.p),
        ("r2", X_sma.r2),
        ("vlr", X_vlr),
        ("phi", X_phi),
        ("phisym", X_phisym),
        ]:
        df_pairs[field] = data.values[idx_row, idx_col]
    return df_pairs

# =======
# Aliases
# =======
clo = transform_closure
clr = transform_clr
vlr = pairwise_vlr
phisym = pairwise_phisym
sma = pairwise_sma
phiDF = pairwise_statistics
