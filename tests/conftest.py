from __future__ import annotations

import pytest

from leitor.models.invoice import InvoiceRecord

ACCESS_KEY = "35503082211222333000181000000000000042403000000101"

GISS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<ConsultarNfseServicoPrestadoResposta xmlns="http://www.abrasf.org.br/nfse.xsd">
  <ListaNfse>
    <CompNfse>
      <Nfse versao="2.04">
        <InfNfse Id="nfse-1001">
          <Numero>1001</Numero>
          <CodigoVerificacao>ABC123</CodigoVerificacao>
          <DataEmissao>2024-03-15T10:30:00</DataEmissao>
          <ValoresNfse>
            <BaseCalculo>1000.00</BaseCalculo>
            <Aliquota>5.00</Aliquota>
            <ValorIss>50.00</ValorIss>
            <ValorLiquidoNfse>935.00</ValorLiquidoNfse>
          </ValoresNfse>
          <PrestadorServico>
            <IdentificacaoPrestador>
              <CpfCnpj><Cnpj>11222333000181</Cnpj></CpfCnpj>
            </IdentificacaoPrestador>
            <RazaoSocial>Consultoria Ação Ltda</RazaoSocial>
          </PrestadorServico>
          <OrgaoGerador>
            <CodigoMunicipio>3550308</CodigoMunicipio>
            <Uf>SP</Uf>
          </OrgaoGerador>
          <DeclaracaoPrestacaoServico>
            <InfDeclaracaoPrestacaoServico>
              <Servico>
                <Valores>
                  <ValorServicos>1.000,00</ValorServicos>
                  <ValorPis>6,50</ValorPis>
                  <ValorCofins>30,00</ValorCofins>
                  <ValorCsll>10,00</ValorCsll>
                  <ValorIr>15,00</ValorIr>
                </Valores>
                <IssRetido>1</IssRetido>
                <ItemListaServico>17.01</ItemListaServico>
                <CodigoCnae>7020400</CodigoCnae>
                <CodigoTributacaoMunicipio>01701</CodigoTributacaoMunicipio>
                <DescricaoCodigoTributacaoMunicipio>Assessoria</DescricaoCodigoTributacaoMunicipio>
                <Discriminacao>Consultoria mensal</Discriminacao>
              </Servico>
              <TomadorServico>
                <IdentificacaoTomador>
                  <CpfCnpj><Cnpj>99888777000100</Cnpj></CpfCnpj>
                </IdentificacaoTomador>
                <RazaoSocial>Cliente Final Ltda</RazaoSocial>
              </TomadorServico>
            </InfDeclaracaoPrestacaoServico>
          </DeclaracaoPrestacaoServico>
        </InfNfse>
      </Nfse>
    </CompNfse>
    <CompNfse>
      <Nfse versao="2.04">
        <InfNfse>
          <Numero>1002</Numero>
          <DataEmissao>2024-03-16</DataEmissao>
          <PrestadorServico>
            <IdentificacaoPrestador>
              <CpfCnpj><Cnpj>11222333000181</Cnpj></CpfCnpj>
            </IdentificacaoPrestador>
            <RazaoSocial>Consultoria Ação Ltda</RazaoSocial>
          </PrestadorServico>
          <DeclaracaoPrestacaoServico>
            <InfDeclaracaoPrestacaoServico>
              <Servico>
                <Valores>
                  <ValorServicos>100,00</ValorServicos>
                </Valores>
              </Servico>
              <TomadorServico>
                <IdentificacaoTomador>
                  <CpfCnpj><Cpf>12345678909</Cpf></CpfCnpj>
                </IdentificacaoTomador>
                <Nome>Fulano de Tal</Nome>
              </TomadorServico>
            </InfDeclaracaoPrestacaoServico>
          </DeclaracaoPrestacaoServico>
        </InfNfse>
      </Nfse>
    </CompNfse>
  </ListaNfse>
</ConsultarNfseServicoPrestadoResposta>
"""

NATIONAL_XML = f"""<?xml version="1.0" encoding="UTF-8"?>
<NFSe xmlns="http://www.sped.fazenda.gov.br/nfse" versao="1.00">
  <infNFSe Id="NFS{ACCESS_KEY}">
    <xLocEmi>Sao Paulo</xLocEmi>
    <nNFSe>42</nNFSe>
    <cLocIncid>3550308</cLocIncid>
    <xTribNac>Suporte tecnico em informatica</xTribNac>
    <dhProc>2024-03-20T14:00:00-03:00</dhProc>
    <emit>
      <CNPJ>11222333000181</CNPJ>
      <xNome>Tecnologia Nacional SA</xNome>
      <enderNac>
        <xLgr>Rua A</xLgr>
        <cMun>3304557</cMun>
        <UF>SP</UF>
      </enderNac>
    </emit>
    <valores>
      <vBC>2000.00</vBC>
      <pAliqAplic>2.00</pAliqAplic>
      <vISSQN>40.00</vISSQN>
      <vLiq>1960.00</vLiq>
    </valores>
    <DPS versao="1.00">
      <infDPS Id="DPS355030821122233300018100900000000000000042">
        <dhEmi>2024-03-20T13:00:00-03:00</dhEmi>
        <cLocEmi>3550308</cLocEmi>
        <prest><CNPJ>11222333000181</CNPJ></prest>
        <toma>
          <CNPJ>99888777000100</CNPJ>
          <xNome>Cliente Final Ltda</xNome>
        </toma>
        <serv>
          <cServ>
            <cTribNac>010701</cTribNac>
            <cTribMun>001</cTribMun>
            <xDescServ>Suporte mensal</xDescServ>
          </cServ>
        </serv>
        <valores>
          <vServPrest><vServ>2000.00</vServ></vServPrest>
          <trib>
            <tribMun>
              <tribISSQN>1</tribISSQN>
              <tpRetISSQN>1</tpRetISSQN>
            </tribMun>
            <tribFed>
              <piscofins>
                <CST>01</CST>
                <vBCPisCofins>2000.00</vBCPisCofins>
                <vPis>13.00</vPis>
                <vCofins>60.00</vCofins>
              </piscofins>
              <vRetCSLL>20.00</vRetCSLL>
            </tribFed>
            <totTrib>
              <vTotTrib>
                <vTotTribFed>100.00</vTotTribFed>
                <vTotTribEst>0.00</vTotTribEst>
                <vTotTribMun>40.00</vTotTribMun>
              </vTotTrib>
            </totTrib>
          </trib>
        </valores>
      </infDPS>
    </DPS>
  </infNFSe>
</NFSe>
"""


# --- XML fixtures ---


@pytest.fixture
def giss_xml() -> str:
    return GISS_XML


@pytest.fixture
def national_xml() -> str:
    return NATIONAL_XML


# --- Record fixtures ---


@pytest.fixture
def record_dict() -> dict:
    return {
        "id": "inv-1-abcde",
        "numero": "1",
        "dataEmissao": "2024-03-15T10:30:00",
        "valorServicos": 1000.0,
        "valorIss": 50.0,
        "issRetido": 1,
        "valorCsll": 10.0,
        "valTotTributos": 120.0,
        "valorLiquidoNfse": 950.0,
        "prestadorRazaoSocial": "ACME SERVICOS LTDA",
        "prestadorCnpj": "11222333000181",
        "tomadorRazaoSocial": "Cliente Final Ltda",
        "tomadorCpfCnpj": "99888777000100",
    }


@pytest.fixture
def record(record_dict: dict) -> InvoiceRecord:
    return InvoiceRecord.from_dict(record_dict)


# --- Isolated directories ---


@pytest.fixture
def leitor_dirs(monkeypatch, tmp_path):
    """Point config/data directories at tmp_path and drop LEITOR_* overrides."""
    config_dir = tmp_path / "config"
    data_dir = tmp_path / "data"
    monkeypatch.setattr("leitor.config.get_config_dir", lambda: config_dir)
    monkeypatch.setattr("leitor.config.get_data_dir", lambda: data_dir)
    for var in ("LEITOR_ID_STRATEGY", "LEITOR_LEGACY_ENCODING"):
        monkeypatch.delenv(var, raising=False)
    return config_dir, data_dir


@pytest.fixture
def access_key() -> str:
    return ACCESS_KEY
