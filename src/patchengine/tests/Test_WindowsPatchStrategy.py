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
import json
import os
import unittest

from patchengine.src.bootstrap.Constants import Constants
from patchengine.src.bootstrap.PatchErrors import PatchOperationError
from patchengine.src.core_logic.PatchRequest import PatchRequest
from patchengine.src.core_logic.RunContext import OSDescriptor, RunContext
from patchengine.tests.library.RequestComposer import RequestComposer
from patchengine.tests.library.RuntimeCompositor import RuntimeCompositor


class TestWindowsPatchStrategy(unittest.TestCase):
    def setUp(self):
        self.runtime = RuntimeCompositor(Constants.OSFamily.WINDOWS, "2019")
        self.extensions = self.runtime.env_layer_extensions
        self.strategy = self.runtime.get_strategy(Constants.OSFamily.WINDOWS)
        self.run_context = RunContext(self.runtime.composite_logger, OSDescriptor(Constants.OSFamily.WINDOWS, 2019),
                                      self.runtime.facts_gateway.get_inventory(self.runtime.facts_gateway.gather()), self.runtime.bootstrapper.start_time)

    def tearDown(self):
        self.runtime.stop()

    @staticmethod
    def __get_request(security_only=None, install_dir="C:/ProgramData/PuppetLabs/pxp-agent/tasks-cache"):
        request_composer = RequestComposer()
        request_composer.security_only = security_only
        request_composer.install_dir = install_dir
        return PatchRequest.from_json(request_composer.get_composed_request())

    def test_patch_command(self):
        command = self.strategy.get_patch_command(self.__get_request(security_only=True))
        self.assertTrue(command.endswith("-NonInteractive -ExecutionPolicy RemoteSigned -File C:/ProgramData/PuppetLabs/pxp-agent/tasks-cache/os_patching/files/os_patching_windows.ps1 -SecurityOnly -Timeout 120"))
        self.assertTrue("powershell.exe" in command)

        command = self.strategy.get_patch_command(self.__get_request())
        self.assertTrue(command.endswith("os_patching_windows.ps1 -Timeout 120"))

    def test_missing_install_dir(self):
        with self.assertRaises(PatchOperationError) as context:
            self.strategy.execute(self.run_context, self.__get_request(install_dir=None))
        self.assertEqual(context.exception.kind, Constants.ErrorKind.SETUP)
        self.assertEqual(context.exception.exit_code, 255)
        self.assertEqual(len(self.extensions.timed_commands_run), 0)

    def test_execute_with_update_list(self):
        outcome = self.strategy.execute(self.run_context, self.__get_request())

        self.assertEqual(outcome.return_code, "Success")
        self.assertEqual(outcome.packages_updated, ["2024-05 Cumulative Update for Windows Server 2019 (KB5037765)",
                                                    "Security Intelligence Update for Microsoft Defender Antivirus (KB2267602)"])
        self.assertFalse(os.path.exists(self.extensions.windows_output_file))

    def test_execute_with_single_update_object(self):
        self.extensions.windows_updates = {"Title": "Windows Malicious Software Removal Tool x64 (KB890830)", "KB": "890830"}
        outcome = self.strategy.execute(self.run_context, self.__get_request())
        self.assertEqual(outcome.packages_updated, ["Windows Malicious Software Removal Tool x64 (KB890830)"])

    def test_execute_not_applicable(self):
        self.extensions.windows_updates = None
        outcome = self.strategy.execute(self.run_context, self.__get_request())
        self.assertEqual(outcome.packages_updated, [])

    def test_missing_output_file_sentinel(self):
        self.extensions.set_command_result("os_patching_windows.ps1", 0, "Searching for updates\nDone\n")
        with self.assertRaises(PatchOperationError) as context:
            self.strategy.execute(self.run_context, self.__get_request())
        self.assertEqual(context.exception.kind, Constants.ErrorKind.PACKAGE_MANAGER)
        self.assertEqual(context.exception.message, "Windows update script did not report an output file")

    def test_unparsable_output_file(self):
        bad_file = os.path.join(self.runtime.temp_folder, "bad_results.json")
        with open(bad_file, "w") as file_handle:
            file_handle.write("{not json")
        self.extensions.set_command_result("os_patching_windows.ps1", 0, "##output file is {0}\n".format(bad_file))

        with self.assertRaises(PatchOperationError) as context:
            self.strategy.execute(self.run_context, self.__get_request())
        self.assertTrue(context.exception.message.startswith("Unable to parse Windows update results"))

    def test_script_failure(self):
        self.runtime.set_test_type("SadPath")
        with self.assertRaises(PatchOperationError) as context:
            self.strategy.execute(self.run_context, self.__get_request())
        self.assertEqual(context.exception.exit_code, 1)
        self.assertTrue("0x8024402C" in context.exception.message)

    def test_script_deadline_includes_grace(self):
        self.runtime.set_test_type("TimeoutPath")
        with self.assertRaises(PatchOperationError) as context:
            self.strategy.execute(self.run_context, self.__get_request())
        self.assertTrue(context.exception.message.startswith("TIMEOUT AFTER {0} seconds".format(120 + Constants.Windows.DEADLINE_GRACE_IN_SECS)))

    def test_output_file_path_parsing(self):
        self.assertEqual(self.strategy.get_output_file_path("noise\r\n##Output File is C:\\Temp\\results.json\r\n"), "C:\\Temp\\results.json")
        self.assertEqual(self.strategy.get_output_file_path("##OUTPUT FILE IS not applicable"), "not applicable")

    def test_clean_cache_not_applicable(self):
        self.strategy.clean_cache()
        self.assertEqual(len(self.extensions.commands_run), 1)     # only the facts command from setUp

    def test_result_file_is_utf8_with_bom(self):
        with open(self.extensions.windows_output_file, "w", encoding="utf-8-sig") as file_handle:
            file_handle.write(json.dumps([{"Title": "Update for Microsoft Edge"}]))
        self.assertEqual(self.strategy.read_update_titles(self.extensions.windows_output_file), ["Update for Microsoft Edge"])


if __name__ == '__main__':
    unittest.main()
