"""
Tests for the configuration schema, loader and logging setup.
"""

import io

import pytest
import yaml
from loguru import logger

from fvturb.config import (
    SimulationConfig,
    from_dict,
    load_yaml,
    save_yaml,
    apply_cli_overrides,
    sa_compressible_preset,
    sst_compressible_preset,
    incompressible_preset,
)
from fvturb.constants import FlowRegime, TurbulenceModel, get_primitive_layout
from fvturb.utils.logging import setup_logging


class TestLayouts:

    @pytest.mark.parametrize("regime,n_dim,n_var,n_prim,n_prim_grad", [
        ("compressible", 2, 4, 9, 6),
        ("compressible", 3, 5, 10, 7),
        ("incompressible", 2, 3, 7, 5),
        ("freesurface", 3, 5, 10, 9),
    ])
    def test_sizes(self, regime, n_dim, n_var, n_prim, n_prim_grad):
        layout = get_primitive_layout(regime, n_dim)
        assert (layout.n_var, layout.n_prim, layout.n_prim_grad) == (n_var, n_prim, n_prim_grad)
        assert layout.velocity == slice(1, n_dim + 1)

    def test_compressible_indices(self):
        layout = get_primitive_layout(FlowRegime.COMPRESSIBLE, 2)
        assert (layout.temperature, layout.pressure, layout.density) == (0, 3, 4)
        assert (layout.laminar_viscosity, layout.eddy_viscosity) == (7, 8)
        assert layout.beta2 == -1

    def test_bad_dimension(self):
        with pytest.raises(ValueError, match="n_dim"):
            get_primitive_layout("compressible", 1)

    def test_model_variable_count(self):
        assert TurbulenceModel.SA.n_var == 1
        assert TurbulenceModel.SST.n_var == 2


class TestPresets:

    def test_sa_compressible(self):
        config = sa_compressible_preset()
        assert config.turbulence.kind() is TurbulenceModel.SA
        assert config.flow.regime == "compressible"

    def test_sst_compressible(self):
        assert sst_compressible_preset().turbulence.kind() is TurbulenceModel.SST

    def test_incompressible(self):
        config = incompressible_preset("sst")
        assert config.flow.layout().regime is FlowRegime.INCOMPRESSIBLE
        assert config.turbulence.model == "sst"


class TestLoader:

    def test_defaults(self):
        config = from_dict({})
        assert isinstance(config, SimulationConfig)
        assert config.numerics.implicit

    def test_nested_override(self):
        config = from_dict({
            'turbulence': {'model': 'sst', 'sst': {'a1': 0.3}},
            'numerics': {'implicit': False},
        })
        assert config.turbulence.sst.a1 == 0.3
        assert config.turbulence.sst.beta_star == 0.09
        assert not config.numerics.implicit

    def test_preset_with_override(self):
        config = from_dict({'preset': 'sst-compressible', 'flow': {'n_dim': 3}})
        assert config.turbulence.model == "sst"
        assert config.flow.n_dim == 3
        assert config.flow.regime == "compressible"

    def test_float_coercion(self):
        config = from_dict({'gas': {'viscosity_ref': '1e-3'}})
        assert config.gas.viscosity_ref == pytest.approx(1e-3)

    def test_unknown_preset(self):
        with pytest.raises(ValueError, match="preset"):
            from_dict({'preset': 'k-epsilon'})

    def test_unknown_model(self):
        with pytest.raises(ValueError, match="turbulence model"):
            from_dict({'turbulence': {'model': 'ke'}})

    def test_unknown_regime(self):
        with pytest.raises(ValueError, match="regime"):
            from_dict({'flow': {'regime': 'hypersonic'}})

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_yaml(tmp_path / "missing.yaml")

    def test_save_and_load(self, tmp_path):
        config = sst_compressible_preset()
        config.turbulence.transition = True
        path = tmp_path / "out" / "config.yaml"
        save_yaml(config, path)

        with open(path) as f:
            assert yaml.safe_load(f)['turbulence']['model'] == 'sst'
        loaded = load_yaml(path)
        assert loaded.to_dict() == config.to_dict()

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_yaml(path).to_dict() == SimulationConfig().to_dict()


class TestLogging:

    def test_level_filtering(self):
        stream = io.StringIO()
        setup_logging(level="WARNING", show_time=False, sink=stream)
        try:
            logger.info("hidden")
            logger.warning("shown")
        finally:
            setup_logging()
        output = stream.getvalue()
        assert "shown" in output
        assert "hidden" not in output


class TestCLIOverrides:

    def test_only_set_values_applied(self):
        import argparse
        args = argparse.Namespace(model="sst", implicit=None, log_level="DEBUG", unrelated=3)
        config = apply_cli_overrides(sa_compressible_preset(), args)
        assert config.turbulence.model == "sst"
        assert config.numerics.implicit
        assert config.logging.level == "DEBUG"

    def test_invalid_override_rejected(self):
        import argparse
        with pytest.raises(ValueError):
            apply_cli_overrides(sa_compressible_preset(), argparse.Namespace(regime="plasma"))
