"""
End-to-end tests for the melt pipeline and its command line entry point.
"""

from pathlib import Path

import pandas as pd
import pytest
import yaml

from glacier_melt import DataFormatError, InsufficientDataError, MeltConfig, MeltPipeline
from glacier_melt.report import format_summary_table
import process_glacier_melt


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in ['GLACIER_MELT_DEGREE_DAY_FACTOR', 'GLACIER_MELT_DISCHARGE_FILE',
                 'GLACIER_MELT_OUTPUT_DIR', 'GLACIER_MELT_MAKE_PLOTS']:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def study_files(tmp_path, climate_frame, discharge_frame):
    """Climate files for 2005/2006, a discharge file and a YAML config pointing at them."""
    data_dir = tmp_path / 'data'
    data_dir.mkdir()
    climate_frame.to_csv(data_dir / 'climate_2005.csv', index=False)

    climate_2006 = climate_frame.assign(
        DATE=['2006-05-15', '2006-05-16', '2006-07-01', '2006-07-02', '2006-11-01', '2006-12-01'],
        TAVG=[1.0, 3.0, 4.0, -2.0, 9.0, 9.0],
    )
    climate_2006.to_csv(data_dir / 'climate_2006.csv', index=False)
    discharge_frame.to_csv(data_dir / 'discharge.csv', index=False)

    config_path = tmp_path / 'config.yaml'
    config_path.write_text(yaml.safe_dump({
        'degree_day_factor': 5.0,
        'seasonal_windows': {2005: [6, 9], 2006: [5, 10]},
        'climate_files': {2005: 'data/climate_2005.csv', 2006: 'data/climate_2006.csv'},
        'discharge_file': 'data/discharge.csv',
        'output_dir': str(tmp_path / 'out'),
    }))
    return config_path


def test_pipeline_end_to_end(study_files, tmp_path):
    result = MeltPipeline(MeltConfig(str(study_files))).run()

    monthly = result.monthly.set_index(['year', 'month'])
    assert monthly.index.tolist() == [(2005, 6), (2005, 7), (2006, 5), (2006, 7)]
    assert monthly.loc[(2005, 6), 'total_melt'] == 35.0
    assert monthly.loc[(2005, 6), 'total_discharge'] == 220.0
    # July 2005 has discharge but no climate records
    assert pd.isna(monthly.loc[(2005, 7), 'total_melt'])
    assert monthly.loc[(2005, 7), 'total_discharge'] == 300.0
    assert monthly.loc[(2006, 5), 'total_melt'] == 20.0
    assert monthly.loc[(2006, 5), 'total_discharge'] == 80.0
    # July 2006 has melt but no discharge
    assert monthly.loc[(2006, 7), 'total_melt'] == 20.0
    assert pd.isna(monthly.loc[(2006, 7), 'total_discharge'])

    assert (result.melt['daily_melt'] >= 0).all()
    assert result.year_summary['year'].tolist() == [2005, 2006]

    out_dir = tmp_path / 'out'
    for name in ['monthly_melt_discharge.csv', 'yearly_summary.csv', 'melt_report.txt',
                 'monthly_melt_discharge.png', 'melt_vs_discharge.png']:
        assert (out_dir / name).exists()


def test_pipeline_correlation_over_paired_months(study_files):
    result = MeltPipeline(MeltConfig(str(study_files))).run(write_outputs=False)
    # Two paired months: (35, 220) and (20, 80) lie on a line
    assert result.correlation == pytest.approx(1.0)
    assert result.outputs == {}


def test_pipeline_is_idempotent(study_files):
    config = MeltConfig(str(study_files))
    first = MeltPipeline(config).run()
    first_csv = Path(first.outputs['monthly']).read_text()
    first_report = Path(first.outputs['report']).read_text()

    second = MeltPipeline(config).run()
    pd.testing.assert_frame_equal(first.monthly, second.monthly)
    pd.testing.assert_frame_equal(first.year_summary, second.year_summary)
    assert first.correlation == second.correlation
    assert Path(second.outputs['monthly']).read_text() == first_csv
    assert Path(second.outputs['report']).read_text() == first_report


def test_missing_discharge_writes_null_cells(study_files, tmp_path):
    result = MeltPipeline(MeltConfig(str(study_files), {'make_plots': False})).run()
    written = pd.read_csv(result.outputs['monthly'])
    assert written['total_discharge'].isna().sum() == 1
    assert written['total_melt'].isna().sum() == 1
    assert 'timeseries_plot' not in result.outputs


def test_insufficient_data_is_reported(study_files, discharge_frame, tmp_path):
    # Only June 2005 is paired
    discharge = discharge_frame[discharge_frame['datetime'].str.startswith('2005-06')]
    config = MeltConfig(str(study_files))

    result = MeltPipeline(config).run(discharge_source=discharge)
    assert result.correlation is None
    assert not result.has_correlation
    assert 'insufficient data' in Path(result.outputs['report']).read_text()
    assert Path(result.outputs['scatter_plot']).exists()

    with pytest.raises(InsufficientDataError):
        MeltPipeline(config).run(discharge_source=discharge, write_outputs=False, strict=True)


def test_bad_date_aborts_run(study_files, climate_frame):
    climate_frame.loc[0, 'DATE'] = 'yesterday'
    with pytest.raises(DataFormatError):
        MeltPipeline(MeltConfig(str(study_files))).run(climate_sources={2005: climate_frame})


def test_missing_temperature_aborts_run(study_files, climate_frame):
    climate_frame['TAVG'] = climate_frame['TAVG'].astype(object)
    climate_frame.loc[2, 'TAVG'] = None
    with pytest.raises(ValueError, match="mean temperature"):
        MeltPipeline(MeltConfig(str(study_files))).run(climate_sources={2005: climate_frame},
                                                       write_outputs=False)


def test_in_memory_sources_skip_configured_files(climate_frame, discharge_frame, tmp_path):
    config = MeltConfig(config_dict={
        'seasonal_windows': {2005: [6, 9]},
        'output_dir': str(tmp_path / 'out'),
    })
    result = MeltPipeline(config).run(climate_sources={2005: climate_frame},
                                      discharge_source=discharge_frame, write_outputs=False)
    assert result.monthly['year'].unique().tolist() == [2005]
    assert result.monthly.set_index('month').loc[6, 'total_melt'] == 35.0


def test_in_memory_climate_with_configured_discharge_file(climate_frame, discharge_frame, write_csv,
                                                        tmp_path):
    config = MeltConfig(config_dict={
        'seasonal_windows': {2005: [6, 9]},
        'discharge_file': write_csv(discharge_frame, 'discharge.csv'),
        'output_dir': str(tmp_path / 'out'),
    })
    result = MeltPipeline(config).run(climate_sources={2005: climate_frame}, write_outputs=False)
    monthly = result.monthly.set_index('month')
    assert monthly.loc[6, 'total_melt'] == 35.0
    assert monthly.loc[6, 'total_discharge'] == 220.0


def test_in_memory_discharge_with_configured_climate_files(climate_frame, discharge_frame, write_csv,
                                                           tmp_path):
    config = MeltConfig(config_dict={
        'seasonal_windows': {2005: [6, 9]},
        'climate_files': {2005: write_csv(climate_frame, 'climate_2005.csv')},
        'output_dir': str(tmp_path / 'out'),
    })
    result = MeltPipeline(config).run(discharge_source=discharge_frame, write_outputs=False)
    assert result.monthly.set_index('month').loc[6, 'total_discharge'] == 220.0


def test_missing_configured_source_without_override_fails(climate_frame, tmp_path):
    config = MeltConfig(config_dict={
        'seasonal_windows': {2005: [6, 9]},
        'output_dir': str(tmp_path / 'out'),
    })
    with pytest.raises(ValueError, match="discharge_file"):
        MeltPipeline(config).run(climate_sources={2005: climate_frame}, write_outputs=False)


def test_summary_table_marks_missing_values():
    summary = pd.DataFrame({'year': [2006], 'mean_melt': [5.0], 'sd_melt': [float('nan')],
                            'mean_discharge': [6.0], 'sd_discharge': [2.828]})
    table = format_summary_table(summary)
    assert '2006' in table
    assert 'NA' in table
    assert '2.83' in table


def test_cli_success(study_files, tmp_path, restore_logging):
    out_dir = tmp_path / 'cli_out'
    code = process_glacier_melt.main(['--config', str(study_files), '--ddf', '4',
                                      '--output-dir', str(out_dir), '--no-plots'])
    assert code == 0
    monthly = pd.read_csv(out_dir / 'monthly_melt_discharge.csv')
    june = monthly[(monthly['year'] == 2005) & (monthly['month'] == 6)]
    assert june['total_melt'].iloc[0] == pytest.approx(28.0)
    assert not (out_dir / 'melt_vs_discharge.png').exists()


def test_cli_failure_returns_nonzero(tmp_path, restore_logging):
    assert process_glacier_melt.main(['--config', str(tmp_path / 'missing.yaml')]) == 1
