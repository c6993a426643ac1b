import os
from dataclasses import dataclass

from cognite.client import ClientConfig, CogniteClient
from cognite.client.credentials import OAuthClientCredentials
from dotenv import load_dotenv

from .common.logger import TagEngineLogger


@dataclass
class EnvConfig:
    """Data structure holding the configs to connect to CDF client locally"""

    cdf_project: str
    cdf_cluster: str
    tenant_id: str
    client_id: str
    client_secret: str


def get_env_variables() -> EnvConfig:
    load_dotenv()

    required_envvars = (
        "CDF_PROJECT",
        "CDF_CLUSTER",
        "IDP_TENANT_ID",
        "IDP_CLIENT_ID",
        "IDP_CLIENT_SECRET",
    )

    missing = [envvar for envvar in required_envvars if envvar not in os.environ]
    if missing:
        raise ValueError(f"Missing one or more env.vars: {missing}")

    return EnvConfig(
        cdf_project=os.getenv("CDF_PROJECT"),  # type: ignore
        cdf_cluster=os.getenv("CDF_CLUSTER"),  # type: ignore
        tenant_id=os.getenv("IDP_TENANT_ID"),  # type: ignore
        client_id=os.getenv("IDP_CLIENT_ID"),  # type: ignore
        client_secret=os.getenv("IDP_CLIENT_SECRET"),  # type: ignore
    )


def create_client(env_config: EnvConfig, debug: bool = False) -> CogniteClient:
    scopes = [f"https://{env_config.cdf_cluster}.cognitedata.com/.default"]
    token_url = (
        f"https://login.microsoftonline.com/{env_config.tenant_id}/oauth2/v2.0/token"
    )
    creds = OAuthClientCredentials(
        token_url=token_url,
        client_id=env_config.client_id,
        client_secret=env_config.client_secret,
        scopes=scopes,
    )
    cnf = ClientConfig(
        client_name="TagGeneration_Client",
        project=env_config.cdf_project,
        base_url=f"https://{env_config.cdf_cluster}.cognitedata.com",
        credentials=creds,
        debug=debug,
    )
    return CogniteClient(cnf)


def create_logger_service(log_level, verbose):
    if log_level not in ["DEBUG", "INFO", "WARNING", "ERROR"]:
        return TagEngineLogger("INFO", verbose)
    return TagEngineLogger(log_level, verbose)
