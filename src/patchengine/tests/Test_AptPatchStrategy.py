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


class TestAptPatchStrategy(unittest.TestCase):
    def setUp(self):
        self.runtime = RuntimeCompositor(Constants.OSFamily.DEBIAN, "22.04")
        self.extensions = self.runtime.env_layer_extensions
        self.extensions.package_updates = ["openssl", "libssl3", "tzdata"]
        self.extensions.security_package_updates = ["openssl", "libssl3"]
        self.strategy = self.runtime.get_strategy(Constants.OSFamily.DEBIAN)

    def tearDown(self):
        self.runtime.stop()

    def __get_run_context(self):
        facts = self.runtime.facts_gateway.gather()
        return RunContext(self.runtime.composite_logger, OSDescriptor(Constants.OSFamily.DEBIAN, 22),
                          self.runtime.facts_gateway.get_inventory(facts), self.runtime.bootstrapper.start_time)

    @staticmethod
    def __get_request(security_only=None, dpkg_params=None):
        request_composer = RequestComposer()
        request_composer.security_only = security_only
        request_composer.dpkg_params = dpkg_params
        return PatchRequest.from_json(request_composer.get_composed_request())

    def test_execute_dist_upgrade(self):
        outcome = self.strategy.execute(self.__get_run_context(), self.__get_request())

        self.assertEqual(self.extensions.timed_commands_run[0], "DEBIAN_FRONTEND=noninteractive apt-get -y " + Constants.Apt.OPTIONS + " dist-upgrade")
        self.assertEqual(outcome.return_code, "Success")
        self.assertEqual(outcome.packages_updated, ["openssl", "libssl3", "tzdata"])
        self.assertEqual(outcome.job_id, "")

    def test_execute_security_only_installs_listed_packages(self):
        outcome = self.strategy.execute(self.__get_run_context(), self.__get_request(security_only=True, dpkg_params="--allow-downgrades"))

        self.assertEqual(self.extensions.timed_commands_run[0],
                         "DEBIAN_FRONTEND=noninteractive apt-get --allow-downgrades -y " + Constants.Apt.OPTIONS + " install openssl libssl3")
        self.assertEqual(outcome.packages_updated, ["openssl", "libssl3"])

    def test_execute_failure(self):
        self.runtime.set_test_type("SadPath")
        with self.assertRaises(PatchOperationError) as context:
            self.strategy.execute(self.__get_run_context(), self.__get_request())

        self.assertEqual(context.exception.kind, Constants.ErrorKind.PACKAGE_MANAGER)
        self.assertEqual(context.exception.exit_code, 100)
        self.assertTrue(context.exception.message.startswith("apt-get dist-upgrade returned non-zero (100)"))
        self.assertTrue("Could not get lock" in context.exception.message)

    def test_execute_timeout(self):
        self.runtime.set_test_type("TimeoutPath")
        with self.assertRaises(PatchOperationError) as context:
            self.strategy.execute(self.__get_run_context(), self.__get_request())

        self.assertEqual(context.exception.kind, Constants.ErrorKind.TIMEOUT)
        self.assertEqual(context.exception.exit_code, 403)
        self.assertTrue(context.exception.message.startswith("TIMEOUT AFTER 120 seconds\n"))

    def test_clean_cache(self):
        self.strategy.clean_cache()
        self.assertEqual(self.extensions.commands_run[-1], "apt-get clean")


if __name__ == '__main__':
    unittest.main()
