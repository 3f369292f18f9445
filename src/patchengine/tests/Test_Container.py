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
from patchengine.src.package_managers.DnfPatchStrategy import DnfPatchStrategy
from patchengine.src.package_managers.WindowsPatchStrategy import WindowsPatchStrategy
from patchengine.tests.library.RuntimeCompositor import RuntimeCompositor


class TestContainer(unittest.TestCase):
    def setUp(self):
        self.runtime = RuntimeCompositor()
        self.container = self.runtime.container

    def tearDown(self):
        self.runtime.stop()

    def test_get_unsupported_service(self):
        """Try get a registered service"""
        with self.assertRaises(KeyError) as context:
            self.container.get('unsupported_service')
        self.assertEqual("'No component for: unsupported_service'", str(context.exception))

    def test_components_are_shared(self):
        self.assertIs(self.container.get('env_layer'), self.runtime.env_layer)
        self.assertIs(self.container.get('reboot_manager').env_layer, self.runtime.env_layer)
        self.assertIs(self.runtime.patch_orchestrator.status_handler, self.runtime.status_handler)
        self.assertIs(self.container.get('start_time'), self.runtime.bootstrapper.start_time)

    def test_patch_strategies_by_family(self):
        patch_strategies = self.container.get('patch_strategies')
        self.assertEqual(sorted(patch_strategies.keys()), sorted(Constants.SUPPORTED_FAMILIES))
        self.assertTrue(isinstance(patch_strategies[Constants.OSFamily.REDHAT], DnfPatchStrategy))
        self.assertTrue(isinstance(patch_strategies[Constants.OSFamily.WINDOWS], WindowsPatchStrategy))
        for family, strategy in patch_strategies.items():
            self.assertEqual(strategy.family, family)

    def test_register_rejects_dependencies_for_plain_values(self):
        with self.assertRaises(ValueError):
            self.container.register('raw_value', 42, ['env_layer'])

    def test_plain_values_and_settings(self):
        self.container.register('maintenance_note', "change freeze")
        self.container.register('note_holder', NoteHolder, ['maintenance_note'], {'priority': 3})
        note_holder = self.container.get('note_holder')
        self.assertEqual(note_holder.maintenance_note, "change freeze")
        self.assertEqual(note_holder.priority, 3)
        self.assertIs(self.container.get('note_holder'), note_holder)

    def test_missing_dependency(self):
        self.container.register('note_holder', NoteHolder, ['unknown_note'])
        with self.assertRaises(KeyError) as context:
            self.container.get('note_holder')
        self.assertEqual("'No component for: unknown_note'", str(context.exception))

    def test_circular_dependency(self):
        self.container.register('first', NoteHolder, ['second'])
        self.container.register('second', NoteHolder, ['first'])
        with self.assertRaises(KeyError) as context:
            self.container.get('first')
        self.assertEqual("'Circular dependency: first -> second -> first'", str(context.exception))
        self.assertEqual(self.container.resolving, [])

    def test_rebuild_keeps_built_instances(self):
        env_layer = self.container.get('env_layer')
        self.container.build(self.runtime.bootstrapper.configuration_factory.get_bootstrap_configuration(Constants.ExecEnv.TEST))
        self.assertIs(self.container.get('env_layer'), env_layer)


class NoteHolder(object):
    def __init__(self, maintenance_note=None, priority=0, **kwargs):
        self.maintenance_note = maintenance_note
        self.priority = priority


if __name__ == '__main__':
    unittest.main()
