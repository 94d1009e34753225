import os
import shutil
import tempfile
import time
import unittest
from pathlib import Path

from configmend.core.config import ConfigManager
from configmend.core.engine import MendEngine
from configmend.core.io import BACKUP_KEEP, FileSystemManager
from configmend.models import Status


class EngineTestCase(unittest.TestCase):
    def setUp(self):
        self.root = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.root, ignore_errors=True)

    def write(self, rel_path, content):
        path = self.root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path


class TestMendEngine(EngineTestCase):
    def test_fix_writes_with_backup(self):
        target = self.write("app.yaml", "a:\nb: 1\n  c: 2\n")
        engine = MendEngine(str(self.root))

        result = engine.audit_and_heal_file("app.yaml", dry_run=False)

        self.assertTrue(result["success"])
        self.assertEqual(result["status"], Status.FIXED)
        self.assertTrue(result["written"])
        self.assertEqual(target.read_text(encoding="utf-8"), "a:\n  b: 1\n  c: 2\n")

        backup = self.root / result["backup_created"]
        self.assertTrue(backup.exists())
        self.assertEqual(backup.read_text(encoding="utf-8"), "a:\nb: 1\n  c: 2\n")
        self.assertTrue(str(result["backup_created"]).startswith(os.path.join(".configmend", "backups")))

    def test_dry_run_leaves_file_alone(self):
        target = self.write("app.yaml", "a:\nb: 1\n  c: 2\n")
        result = MendEngine(str(self.root)).audit_and_heal_file("app.yaml", dry_run=True)

        self.assertFalse(result["written"])
        self.assertEqual(result["healed_content"], "a:\n  b: 1\n  c: 2\n")
        self.assertEqual(target.read_text(encoding="utf-8"), "a:\nb: 1\n  c: 2\n")
        self.assertFalse((self.root / ".configmend").exists())

    def test_unchanged_file_not_written(self):
        self.write("ok.yaml", "a: 1\n")
        result = MendEngine(str(self.root)).audit_and_heal_file("ok.yaml", dry_run=False)
        self.assertTrue(result["success"])
        self.assertFalse(result["written"])
        self.assertIsNone(result["healed_content"])

    def test_check_only_never_writes(self):
        self.write("app.yaml", "a:\nb: 1\n  c: 2\n")
        result = MendEngine(str(self.root)).audit_and_heal_file("app.yaml", dry_run=False, check_only=True)
        self.assertFalse(result["success"])
        self.assertEqual(result["status"], Status.FIXABLE)
        self.assertFalse(result["written"])

    def test_path_traversal_rejected(self):
        result = MendEngine(str(self.root)).audit_and_heal_file("../outside.yaml")
        self.assertEqual(result["status"], "SECURITY_ERROR")
        self.assertFalse(result["success"])

    def test_missing_and_empty_files(self):
        engine = MendEngine(str(self.root))
        self.assertEqual(engine.audit_and_heal_file("nope.yaml")["status"], "FILE_NOT_FOUND")

        self.write("empty.yaml", "  \n\n")
        self.assertEqual(engine.audit_and_heal_file("empty.yaml")["status"], "EMPTY_FILE")

    def test_bom_is_stripped(self):
        self.write("bom.yaml", "\ufeffa: 1\n")
        result = MendEngine(str(self.root)).audit_and_heal_file("bom.yaml")
        self.assertEqual(result["status"], Status.VALID)

    def test_ignored_by_config(self):
        self.write(".configmend.yaml", "rules:\n  ignore:\n    - \"vendor/*\"\n")
        self.write("vendor/lib.yaml", "key: [unclosed\n")
        result = MendEngine(str(self.root)).audit_and_heal_file("vendor/lib.yaml")
        self.assertEqual(result["status"], "IGNORED")
        self.assertTrue(result["success"])

    def test_config_schema_default(self):
        self.write(".configmend.yaml", "rules:\n  schema: kubernetes\n")
        self.write("cm.yaml", "apiVersion: v1\nkind: ConfigMap\n")
        result = MendEngine(str(self.root)).audit_and_heal_file("cm.yaml")
        self.assertEqual(result["status"], Status.FIXED)
        self.assertIn("metadata:", result["healed_content"])

    def test_audit_stream(self):
        engine = MendEngine(str(self.root))
        result = engine.audit_stream('{"a": 1,}', source_name="<stdin>")
        self.assertTrue(result["success"])
        self.assertEqual(result["report"].fixed_content, '{\n  "a": 1\n}\n')
        self.assertEqual(engine.audit_stream("   ")["status"], "EMPTY_FILE")

    def test_batch_skips_hidden_and_filters_extensions(self):
        self.write("a.yaml", "a: 1\n")
        self.write("sub/b.yml", "b: 2\n")
        self.write("sub/notes.txt", "c: 3\n")
        self.write(".hidden/c.yaml", "c: 3\n")
        self.write(".dot.yaml", "d: 4\n")

        results = MendEngine(str(self.root)).batch_heal(str(self.root), [".yaml", ".yml"])
        paths = [r["full_path"] for r in results]
        self.assertEqual(paths, ["a.yaml", os.path.join("sub", "b.yml")])

    def test_batch_depth_limit(self):
        self.write("top.yaml", "a: 1\n")
        self.write("one/two/deep.yaml", "a: 1\n")
        results = MendEngine(str(self.root)).batch_heal(str(self.root), [".yaml"], max_depth=1)
        self.assertEqual([r["full_path"] for r in results], ["top.yaml"])


class TestFileSystemManager(EngineTestCase):
    def test_atomic_write_replaces_content(self):
        target = self.write("f.yaml", "old\n")
        fs = FileSystemManager(self.root)
        fs.atomic_write(target, "new\n")
        self.assertEqual(target.read_text(encoding="utf-8"), "new\n")
        self.assertEqual(sorted(p.name for p in self.root.iterdir()), ["f.yaml"])

    def test_backup_rotation_keeps_newest(self):
        target = self.write("deploy/f.yaml", "v0\n")
        fs = FileSystemManager(self.root)
        fs.ensure_workspace()

        for i in range(BACKUP_KEEP + 2):
            target.write_text(f"v{i}\n", encoding="utf-8")
            backup = fs.create_backup(target)
            # Distinct mtimes so rotation order is stable
            stamp = time.time() - 100 + i
            os.utime(backup, (stamp, stamp))

        backups = list((fs.backup_dir / "deploy").glob("f.*.yaml"))
        self.assertEqual(len(backups), BACKUP_KEEP)
        contents = sorted(p.read_text(encoding="utf-8") for p in backups)
        self.assertNotIn("v0\n", contents)
        self.assertIn(f"v{BACKUP_KEEP + 1}\n", contents)


class TestConfigManager(EngineTestCase):
    def test_defaults(self):
        config = ConfigManager(self.root)
        self.assertIsNone(config.source)
        self.assertIsNone(config.schema)
        self.assertFalse(config.use_ai)
        self.assertTrue(config.is_ignored("node_modules/pkg/x.yaml"))
        self.assertFalse(config.is_ignored("deploy/app.yaml"))

    def test_state_dir_config_preferred(self):
        self.write(".configmend/config.yaml", "suggestions:\n  use_ai: true\n")
        self.write(".configmend.yaml", "rules:\n  schema: helm\n")
        config = ConfigManager(self.root)
        self.assertTrue(config.use_ai)
        self.assertIsNone(config.schema)
        self.assertEqual(config.source.name, "config.yaml")

    def test_broken_config_keeps_defaults(self):
        self.write(".configmend.yaml", "rules: [unclosed\n")
        with self.assertLogs("configmend.config", level="WARNING"):
            config = ConfigManager(self.root)
        self.assertIsNone(config.schema)
        self.assertTrue(config.is_ignored(".git/config"))

    def test_defaults_not_shared_between_instances(self):
        self.write(".configmend.yaml", "rules:\n  ignore: []\n")
        ConfigManager(self.root)
        self.assertTrue(ConfigManager.DEFAULT_CONFIG["rules"]["ignore"])


if __name__ == '__main__':
    unittest.main()
