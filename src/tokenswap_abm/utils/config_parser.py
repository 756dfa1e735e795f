import json
import os
import yaml

from tokenswap_abm.core.pool import Pool


def load_config(path: str) -> dict:
    """
    Load a configuration file (YAML or JSON) from the given path and return it as a Python dictionary.

    Supports `.yaml`, `.yml`, and `.json` files. The root object of the file
    must be a mapping.

    Parameters
    ----------
    path : str
        The path to the configuration file.

    Returns
    -------
    dict
        Parsed configuration data as a Python dictionary.

    Raises
    ------
    FileNotFoundError
        If the file does not exist at the given path.

    ValueError
        - If the file extension is unsupported.
        - If the file content is not a dictionary.
    """
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Config file not found: {path}")

    _, ext = os.path.splitext(path.lower())

    if ext in (".yaml", ".yml"):
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    elif ext == ".json":
        with open(path, "r") as f:
            data = json.load(f)
    else:
        raise ValueError("Unsupported config extension. Use .yaml, .yml, or .json.")

    if not isinstance(data, dict):
        raise ValueError("Config file root must be a dictionary.")
    return data


def load_pool_snapshot(path: str) -> Pool:
    """
    Load a pool snapshot stored under the ``pool`` key of a config file.

    The mapping uses the serialized pool layout produced by ``Pool.to_dict``.
    """
    data = load_config(path)
    pool_data = data.get("pool")
    if not isinstance(pool_data, dict):
        raise ValueError("Config file must contain a 'pool' mapping.")
    try:
        return Pool.from_dict(pool_data)
    except KeyError as exc:
        raise ValueError(f"Pool snapshot is missing field {exc}") from exc
