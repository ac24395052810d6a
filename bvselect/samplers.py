from __future__ import annotations

from .samplers_blasso import _blasso_prior_precision, _blasso_update_lambda_sq, _fit_blasso
from .samplers_horseshoe import _fit_horseshoe, _horseshoe_update_scales, _horseshoe_update_tau_sq
from .ssvs import _fit_ssvs, inclusion_log_odds, sample_delta_sweep
