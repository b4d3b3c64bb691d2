from fourier_step_fhe.depth import ConfigurationError, DepthBudgetError, DepthPlan, plan_depth
from fourier_step_fhe.generator.generate_step_coeffs import StepCoefficients, compute_step_coeffs
from fourier_step_fhe.plain_backend import LeveledValue, PlainBackend
from fourier_step_fhe.step_service import StepApproximator, approximated_step, series_error_bound
from fourier_step_fhe.trig_kernel import TrigKernel
