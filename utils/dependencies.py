"""Module for checking dependencies required by the inflation forecaster.

This module provides a function to verify the availability of external libraries needed for
each feature of the application, raising informative errors if dependencies are missing.
"""

import importlib.util
import logging
from typing import List, Optional, Dict, Tuple

logger = logging.getLogger(__name__)

# Mapping of features to their required libraries
FEATURE_DEPENDENCIES: Dict[str, List[Tuple[str, str, str, str]]] = {
    "forecast": [
        ("statsmodels", "statsmodels", "pip install statsmodels", "ARIMA implementation from statsmodels"),
        ("numpy", "NumPy", "pip install numpy", "numerical computations"),
    ],
    "fetch": [
        ("requests", "requests", "pip install requests", "HTTP access to the inflation provider"),
        ("schema", "schema", "pip install schema", "payload validation"),
        ("pandas", "pandas", "pip install pandas", "data handling"),
    ],
    "config": [
        ("yaml", "PyYAML", "pip install pyyaml", "reading config.yaml"),
        ("dotenv", "python-dotenv", "pip install python-dotenv", "loading credentials from .env"),
        ("schema", "schema", "pip install schema", "configuration validation"),
    ],
    "dashboard": [
        ("matplotlib", "Matplotlib", "pip install matplotlib", "the interactive forecast dashboard"),
    ],
}

CONDA_PACKAGE_NAMES: Dict[str, str] = {
    "yaml": "pyyaml",
    "dotenv": "python-dotenv",
}


def check_dependencies(features: Optional[List[str]] = None, package_manager: str = "pip") -> None:
    """
    Check if required libraries are installed for the specified features.

    Args:
        features: List of feature names to check dependencies for. If None, checks every
            feature. Defaults to None.
        package_manager: Package manager for installation instructions ('pip' or 'conda'). Defaults to 'pip'.

    Raises:
        ValueError: If features contains unknown names or package_manager is invalid.
        ImportError: If required libraries are missing, with instructions for installation.
    """
    if features is None:
        features = list(FEATURE_DEPENDENCIES)
    else:
        invalid_features = [name for name in features if name not in FEATURE_DEPENDENCIES]
        if invalid_features:
            raise ValueError(
                f"Invalid feature names: {invalid_features}. Available features: {list(FEATURE_DEPENDENCIES)}"
            )

    if package_manager not in {"pip", "conda"}:
        raise ValueError("package_manager must be 'pip' or 'conda'.")

    missing_libraries = []
    checked_libraries = set()

    for feature in features:
        for module_name, lib_name, install_cmd, usage in FEATURE_DEPENDENCIES[feature]:
            if module_name in checked_libraries:
                continue
            checked_libraries.add(module_name)
            if importlib.util.find_spec(module_name) is None:
                if package_manager == "conda":
                    install_cmd = f"conda install {CONDA_PACKAGE_NAMES.get(module_name, module_name)}"
                missing_libraries.append((lib_name, install_cmd, f"{usage} in {feature}"))

    if missing_libraries:
        error_message = "Missing required libraries:\n"
        for lib_name, install_cmd, usage in missing_libraries:
            error_message += f"- {lib_name}: Used for {usage}. Install with: {install_cmd}\n"
        logger.error(error_message)
        raise ImportError(error_message)

    logger.info(f"All required libraries for features {features} are installed.")
