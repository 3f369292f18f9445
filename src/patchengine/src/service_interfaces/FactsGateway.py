# Copyright 2020 Microsoft Corporation
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# Requires Python 3.6+

""" Facts gateway - obtains the node's OS descriptor and patch inventory from the configuration agent """
import json
import re
from patchengine.src.bootstrap.Constants import Constants
from patchengine.src.bootstrap.PatchErrors import PatchOperationError
from patchengine.src.core_logic.RunContext import OSDescriptor, PatchInventory

# do not instantiate directly - these are exclusively for type hinting support
from patchengine.src.bootstrap.EnvLayer import EnvLayer
from patchengine.src.local_loggers.CompositeLogger import CompositeLogger


class FactsGateway(object):
    def __init__(self, env_layer, composite_logger):
        # type: (EnvLayer, CompositeLogger) -> None
        self.env_layer = env_layer
        self.composite_logger = composite_logger

        paths = self.env_layer.paths
        self.fact_generation_script = paths.FACT_GENERATION_SCRIPT
        self.facts_cmd = Constants.Commands.FACTS.format(puppet='"{0}"'.format(self.env_layer.platform.expand_path(paths.PUPPET_CMD)))
        if self.env_layer.platform.is_windows():
            self.fact_generation_cmd = Constants.Commands.WINDOWS_FACT_GENERATION.format(powershell=self.env_layer.platform.expand_path(paths.POWERSHELL), script=self.fact_generation_script)
        else:
            self.fact_generation_cmd = Constants.Commands.LINUX_FACT_GENERATION.format(script=self.fact_generation_script)

    def check_prerequisites(self):
        # type: () -> None
        """ The fact generation script is laid down by the os_patching class; its absence means the node is not configured. """
        if not self.env_layer.file_system.exists(self.fact_generation_script):
            raise PatchOperationError("{0} does not exist, declare os_patching and run Puppet first".format(self.fact_generation_script),
                                      Constants.ErrorKind.SETUP, Constants.ErrorCode.SETUP)

    def gather(self):
        # type: () -> dict
        """ Returns the full facts document, with at least the 'os' and 'os_patching' keys present. """
        self.composite_logger.log_debug("[FG] Gathering facts. [Command={0}]".format(self.facts_cmd))
        code, output, error_output = self.env_layer.run_command_capture(self.facts_cmd)
        if code != 0:
            raise PatchOperationError(error_output or output, Constants.ErrorKind.FACTS, code)

        try:
            facts = json.loads(output)
        except ValueError as error:
            raise PatchOperationError("Could not parse facts: {0}".format(repr(error)), Constants.ErrorKind.FACTS, Constants.ErrorCode.NOT_FOUND)

        # 'puppet facts' wraps the values with the certname
        if isinstance(facts, dict) and isinstance(facts.get(Constants.FactKeys.WRAPPED_VALUES), dict):
            facts = facts[Constants.FactKeys.WRAPPED_VALUES]

        if not isinstance(facts, dict) or not isinstance(facts.get(Constants.FactKeys.OS), dict) or not isinstance(facts.get(Constants.FactKeys.OS_PATCHING), dict):
            raise PatchOperationError("Could not find facts", Constants.ErrorKind.FACTS, Constants.ErrorCode.NOT_FOUND)

        return facts

    def get_os_descriptor(self, facts):
        # type: (dict) -> OSDescriptor
        os_facts = facts[Constants.FactKeys.OS]
        family = os_facts.get(Constants.FactKeys.FAMILY)
        release = os_facts.get(Constants.FactKeys.RELEASE)
        major = release.get(Constants.FactKeys.MAJOR) if isinstance(release, dict) else None

        match = re.match(r"^\s*(\d+)", str(major)) if major is not None else None
        if match is None:
            raise PatchOperationError("Could not determine OS release from facts: {0}".format(str(major)), Constants.ErrorKind.FACTS, Constants.ErrorCode.NOT_FOUND)

        os_descriptor = OSDescriptor(family, int(match.group(1)))
        self.composite_logger.log_debug("[FG] Facts obtained. [Family={0}][ReleaseMajor={1}]".format(str(os_descriptor.family), str(os_descriptor.release_major)))
        return os_descriptor

    @staticmethod
    def get_inventory(facts):
        # type: (dict) -> PatchInventory
        return PatchInventory(facts[Constants.FactKeys.OS_PATCHING])

    def refresh(self, os_descriptor):
        # type: (OSDescriptor) -> None
        """ Regenerates the inventory. Skipped on Windows: the update script scans for itself and scans are slow. """
        if os_descriptor.is_windows():
            self.composite_logger.log_debug("[FG] Fact refresh skipped on windows.")
            return

        self.composite_logger.log("Running os_patching fact refresh")
        code, output, error_output = self.env_layer.run_command_capture(self.fact_generation_cmd)
        if code != 0:
            raise PatchOperationError(error_output or output, Constants.ErrorKind.FACT_REFRESH, code)
