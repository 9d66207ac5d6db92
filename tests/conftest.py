"""
Shared fixtures for tests
"""

import pytest
from lxml import etree

from twbgraph.config import Config


def parse_xml(xml: str):
    """Parse an XML string into a root element"""
    return etree.fromstring(xml.strip().encode("utf-8"))


# ==================== Workbook XML ====================

SCENARIO_A_XML = """
<workbook>
  <datasources>
    <datasource name='Sales' caption='Sales'>
      <column id='[Sales]' name='[Sales]' caption='Sales' datatype='real' role='measure' type='quantitative'/>
      <column id='[Cost]' name='[Cost]' caption='Cost' datatype='real' role='measure' type='quantitative'/>
      <column id='[Profit Ratio]' name='[Profit Ratio]' caption='Profit Ratio' datatype='real' role='measure'>
        <calculation class='tableau' formula='[Sales]/[Cost]'/>
      </column>
    </datasource>
  </datasources>
</workbook>
"""

SCENARIO_B_XML = """
<workbook>
  <datasources>
    <datasource name='Parameters' hasconnection='false'>
      <param name='Threshold' datatype='integer'/>
    </datasource>
    <datasource name='Sales'>
      <column id='[Threshold]' caption='Threshold'/>
    </datasource>
  </datasources>
</workbook>
"""

SCENARIO_C_XML = """
<workbook>
  <datasources>
    <datasource name='Sales'>
      <column id='[Doubled]' caption='Doubled'>
        <calculation class='tableau' formula='[External Metric]*2'/>
      </column>
    </datasource>
  </datasources>
</workbook>
"""

SUPERSTORE_XML = """
<workbook source-build='2023.1.0'>
  <datasources>
    <datasource name='Parameters' hasconnection='false' inline='true'>
      <column caption='Target Margin' datatype='real' name='[Parameter 1]' param-domain-type='range' role='measure' type='quantitative' value='0.2'>
        <calculation class='tableau' formula='0.2'/>
      </column>
    </datasource>
    <datasource caption='Superstore' name='federated.0a1b2c'>
      <column datatype='real' name='[Sales]' role='measure' type='quantitative' semantic-role='[Measure]' default-aggregation='Sum'/>
      <column caption='Profit' datatype='real' name='[Profit]' role='measure' type='quantitative'/>
      <column caption='Region' datatype='string' name='[Region]' role='dimension' type='nominal' semantic-role='[Nominal]' hidden='true'/>
      <column caption='Profit Ratio' datatype='real' name='[Calculation_1001]' role='measure' type='quantitative'>
        <calculation class='tableau' formula='SUM([Profit])/SUM([Sales])'/>
        <desc>
          <formatted-text>
            <run>Share of profit in sales</run>
          </formatted-text>
        </desc>
      </column>
      <column caption='Above Target' datatype='boolean' name='[Calculation_1002]' role='dimension' type='nominal'>
        <calculation class='tableau' formula='[Calculation_1001] &gt; [Parameter 1]'/>
      </column>
    </datasource>
  </datasources>
</workbook>
"""


@pytest.fixture
def scenario_a_tree():
    """Sales datasource with a Profit Ratio calculation"""
    return parse_xml(SCENARIO_A_XML)


@pytest.fixture
def scenario_b_tree():
    """Parameter registered both as <param> and as a column elsewhere"""
    return parse_xml(SCENARIO_B_XML)


@pytest.fixture
def scenario_c_tree():
    """Formula referencing an undeclared field"""
    return parse_xml(SCENARIO_C_XML)


@pytest.fixture
def superstore_tree():
    """Workbook with captions differing from internal identifiers"""
    return parse_xml(SUPERSTORE_XML)


@pytest.fixture
def sample_twb_file(tmp_path):
    """Workbook file on disk"""
    workbook_dir = tmp_path / "workbooks"
    workbook_dir.mkdir()
    twb = workbook_dir / "superstore.twb"
    twb.write_text("<?xml version='1.0' encoding='utf-8' ?>\n" + SUPERSTORE_XML.strip(), encoding="utf-8")
    yield twb


# ==================== Environment Fixtures ====================

@pytest.fixture
def clean_config(monkeypatch, tmp_path):
    """Fresh configuration singleton with logs and output under tmp_path"""
    monkeypatch.setenv("TWBGRAPH_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("TWBGRAPH_OUTPUT_DIR", str(tmp_path / "output"))
    Config.reset_instance()
    yield
    Config.reset_instance()
