"""Template and parameter file loading."""
import json
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..actions.core import log_debug
from ..config.schema import FileInputs
from ..deploy.errors import ConfigError


@dataclass(frozen=True)
class ParsedFiles:
    """Template and parameters ready to send to Azure."""
    template_contents: Optional[Dict[str, Any]] = None
    template_spec_id: Optional[str] = None
    parameters_contents: Dict[str, Any] = field(default_factory=lambda: {"parameters": {}})


def run_az(args: List[str], az_cli: str = "az") -> str:
    """Run an Azure CLI command and return its stdout.

    Raises:
        ConfigError: If the CLI is missing or the command fails.
    """
    cmd = [az_cli, *args]
    log_debug(f"Running command: {' '.join(cmd)}")
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=True)
    except FileNotFoundError as e:
        raise ConfigError(f"Azure CLI executable '{az_cli}' was not found on PATH") from e
    except subprocess.CalledProcessError as e:
        raise ConfigError(f"Command '{' '.join(cmd)}' failed: {(e.stderr or '').strip()}") from e
    return result.stdout


class FileParser:
    """Builds ParsedFiles from the template and parameter inputs."""

    def __init__(self, az_cli: str = "az"):
        self.az_cli = az_cli

    def parse(self, inputs: FileInputs) -> ParsedFiles:
        """Load the template and parameters described by the inputs.

        Bicep sources are compiled by the Azure CLI; JSON files are read as-is.
        Inline parameter values override values from the parameters file.

        Args:
            inputs: File inputs from the action configuration.

        Returns:
            ParsedFiles: Loaded template and parameters.

        Raises:
            ConfigError: If a file cannot be read or compiled.
        """
        template_contents = None
        template_spec_id = inputs.template_spec_id
        parameters: Dict[str, Any] = {}

        if inputs.parameters_file:
            path = Path(inputs.parameters_file)
            if path.suffix.lower() == ".bicepparam":
                compiled = self._build_params(path)
                parameters = compiled.get("parameters", {})
                if compiled.get("template") is not None and not inputs.template_file:
                    template_contents = compiled["template"]
                template_spec_id = template_spec_id or compiled.get("templateSpecId")
            else:
                parameters = self._load_json(path).get("parameters", {})

        if inputs.template_file:
            path = Path(inputs.template_file)
            if path.suffix.lower() == ".bicep":
                template_contents = self._build_template(path)
            else:
                template_contents = self._load_json(path)

        for name, value in inputs.parameters.items():
            parameters[name] = {"value": value}

        if template_spec_id:
            template_contents = None
        elif template_contents is None:
            raise ConfigError("One of template-file, template-spec-id or a .bicepparam parameters-file is required")

        return ParsedFiles(
            template_contents=template_contents,
            template_spec_id=template_spec_id,
            parameters_contents={"parameters": parameters},
        )

    def _load_json(self, path: Path) -> Dict[str, Any]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError as e:
            raise ConfigError(f"File '{path}' does not exist") from e
        except ValueError as e:
            raise ConfigError(f"File '{path}' is not valid JSON: {e}") from e

    def _build_template(self, path: Path) -> Dict[str, Any]:
        output = run_az(["bicep", "build", "--file", str(path), "--stdout"], self.az_cli)
        return json.loads(output)

    def _build_params(self, path: Path) -> Dict[str, Any]:
        output = json.loads(
            run_az(["bicep", "build-params", "--file", str(path), "--stdout"], self.az_cli)
        )
        # bicep wraps the compiled documents as JSON strings
        if "parametersJson" in output:
            template_json = output.get("templateJson")
            return {
                "parameters": json.loads(output["parametersJson"]).get("parameters", {}),
                "template": json.loads(template_json) if template_json else None,
                "templateSpecId": output.get("templateSpecId"),
            }
        return {"parameters": output.get("parameters", {})}
