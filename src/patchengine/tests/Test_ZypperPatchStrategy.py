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
import unittest

from patchengine.src.bootstrap.Constants import Constants
from patchengine.src.bootstrap.PatchErrors import PatchOperationError
from patchengine.src.core_logic.PatchRequest import PatchRequest
from patchengine.src.core_logic.RunContext import OSDescriptor, RunContext
from patchengine.tests.library.RequestComposer import RequestComposer
from patchengine.tests.library.RuntimeCompositor import RuntimeCompositor


class TestZypperPatchStrategy(unittest.TestCase):
    def setUp(self):
        self.runtime = RuntimeCompositor(Constants.OSFamily.SUSE, "15")
        self.extensions = self.runtime.env_layer_extensions
        self.extensions.package_updates = ["kernel-default", "libzypp"]
        self.extensions.security_package_updates = ["kernel-default"]
        self.strategy = self.runtime.get_strategy(Constants.OSFamily.SUSE)

    def tearDown(self):
        self.runtime.stop()

    def __get_run_context(self, release_major=15):
        facts = self.runtime.facts_gateway.gather()
        return RunContext(self.runtime.composite_logger, OSDescriptor(Constants.OSFamily.SUSE, release_major),
                          self.runtime.facts_gateway.get_inventory(facts), self.runtime.bootstrapper.start_time)

    @staticmethod
    def __get_request(security_only=None, zypper_params=None):
        request_composer = RequestComposer()
        request_composer.security_only = security_only
        request_composer.zypper_params = zypper_params
        return PatchRequest.from_json(request_composer.get_composed_request())

    def test_command_options_by_release(self):
        self.assertEqual(self.strategy.get_command_options(11), "--auto-agree-with-licenses")
        self.assertEqual(self.strategy.get_command_options(12), "--auto-agree-with-licenses --replacefiles")
        self.assertEqual(self.strategy.get_command_options(15), "--auto-agree-with-licenses --replacefiles")

    def test_execute_update(self):
        outcome = self.strategy.execute(self.__get_run_context(), self.__get_request())

        self.assertEqual(self.extensions.timed_commands_run[0],
                         "zypper --non-interactive --no-abbrev --quiet update -t package --auto-agree-with-licenses --replacefiles")
        self.assertEqual(outcome.return_code, "Success")
        self.assertEqual(outcome.packages_updated, ["kernel-default", "libzypp"])

    def test_execute_security_patch_on_old_release(self):
        outcome = self.strategy.execute(self.__get_run_context(11), self.__get_request(security_only=True, zypper_params="--no-refresh"))

        self.assertEqual(self.extensions.timed_commands_run[0],
                         "zypper --non-interactive --no-abbrev --quiet --no-refresh patch -g security --auto-agree-with-licenses")
        self.assertEqual(outcome.packages_updated, ["kernel-default"])

    def test_execute_failure(self):
        self.runtime.set_test_type("SadPath")
        with self.assertRaises(PatchOperationError) as context:
            self.strategy.execute(self.__get_run_context(), self.__get_request())

        self.assertEqual(context.exception.exit_code, 4)
        self.assertTrue(context.exception.message.startswith("zypper update returned non-zero (4)"))

    def test_clean_cache(self):
        self.strategy.clean_cache()
        self.assertEqual(self.extensions.commands_run[-1], "zypper cc --all")


if __name__ == '__main__':
    unittest.main()
