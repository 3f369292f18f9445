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

"""AptPatchStrategy for Debian family nodes"""
from patchengine.src.bootstrap.Constants import Constants
from patchengine.src.package_managers.PatchStrategy import PatchStrategy, PatchOutcome


class AptPatchStrategy(PatchStrategy):
    """Implementation of Debian patching using apt-get"""

    def __init__(self, env_layer, composite_logger):
        super(AptPatchStrategy, self).__init__(env_layer, composite_logger)
        self.family = Constants.OSFamily.DEBIAN
        self.tool_name = "apt-get"
        self.extra_params_key = Constants.RequestKeys.DPKG_PARAMS
        self.clean_cache_cmd = Constants.Apt.CLEAN_CACHE

        # Commands
        self.upgrade_cmd = Constants.Apt.UPGRADE
        self.upgrade_options = Constants.Apt.OPTIONS

    def execute(self, run_context, request):
        # The inventory list for the mode is what gets reported, apt does not confirm per package
        packages = run_context.inventory.get_updates(request.security_only)
        if request.security_only:
            mode = Constants.Apt.SECURITY_MODE.format(packages=" ".join(packages))
        else:
            mode = Constants.Apt.FULL_MODE

        command = self.compose_command(self.upgrade_cmd, params=request.get_extra_params(self.extra_params_key), options=self.upgrade_options, mode=mode)
        raw_output = self.invoke_package_manager(command, request.timeout, "apt-get {0}".format(mode.split()[0]))
        return PatchOutcome(Constants.RETURN_SUCCESS, packages, "", raw_output)
