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

"""WindowsPatchStrategy for windows nodes"""
import json
import re
from patchengine.src.bootstrap.Constants import Constants
from patchengine.src.bootstrap.PatchErrors import PatchOperationError
from patchengine.src.package_managers.PatchStrategy import PatchStrategy, PatchOutcome


class WindowsPatchStrategy(PatchStrategy):
    """Implementation of Windows patching through the bundled PowerShell update script"""

    def __init__(self, env_layer, composite_logger):
        super(WindowsPatchStrategy, self).__init__(env_layer, composite_logger)
        self.family = Constants.OSFamily.WINDOWS
        self.tool_name = "os_patching_windows.ps1"

        # Commands
        self.patch_cmd = Constants.Windows.PATCH
        self.powershell_path = Constants.WindowsPaths.POWERSHELL
        self.patch_script_path = Constants.WindowsPaths.PATCH_SCRIPT

    def get_patch_command(self, request):
        if request.install_dir is None:
            raise PatchOperationError("Task install directory (_installdir) was not provided", Constants.ErrorKind.SETUP, Constants.ErrorCode.SETUP)

        return self.compose_command(self.patch_cmd,
                                    powershell=self.env_layer.platform.expand_path(self.powershell_path),
                                    script=self.env_layer.platform.expand_path(self.patch_script_path, installdir=request.install_dir),
                                    security=Constants.Windows.SECURITY_FLAG if request.security_only else "",
                                    timeout=str(request.timeout))

    def execute(self, run_context, request):
        command = self.get_patch_command(request)
        raw_output = self.invoke_package_manager(command, request.timeout + Constants.Windows.DEADLINE_GRACE_IN_SECS, "Windows update script")

        output_file = self.get_output_file_path(raw_output)
        if output_file.lower() == Constants.Windows.OUTPUT_FILE_NOT_APPLICABLE:
            self.composite_logger.log("No Windows updates were applicable")
            return PatchOutcome(Constants.RETURN_SUCCESS, [], "", raw_output)

        return PatchOutcome(Constants.RETURN_SUCCESS, self.read_update_titles(output_file), "", raw_output)

    # region - Script result handling
    @staticmethod
    def get_output_file_path(raw_output):
        # type: (str) -> str
        """ The script announces its result file as '##Output File is <path>' """
        for line in raw_output.splitlines():
            match = re.match(Constants.Windows.OUTPUT_FILE_REGEX, line.strip(), re.IGNORECASE)
            if match is not None:
                return match.group(1).strip()
        raise PatchOperationError("Windows update script did not report an output file", Constants.ErrorKind.PACKAGE_MANAGER)

    def read_update_titles(self, output_file):
        # type: (str) -> list
        """ Result file holds either a list of updates or a single update object. Always returns a list. """
        try:
            output_data = json.loads(self.env_layer.file_system.read_with_retry(output_file, encoding='utf-8-sig'))
        except ValueError as error:
            raise PatchOperationError("Unable to parse Windows update results in {0}: {1}".format(output_file, repr(error)), Constants.ErrorKind.PACKAGE_MANAGER)
        except Exception as error:
            raise PatchOperationError("Unable to read Windows update results in {0}: {1}".format(output_file, repr(error)), Constants.ErrorKind.PACKAGE_MANAGER)

        self.env_layer.file_system.delete(output_file)

        if isinstance(output_data, list):
            return [item.get(Constants.Windows.TITLE) for item in output_data if isinstance(item, dict)]
        if isinstance(output_data, dict):
            return [output_data.get(Constants.Windows.TITLE)]
        return []
    # endregion
