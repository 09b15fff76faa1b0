#!/usr/bin/env python3
"""CDN Uploader - エントリーポイント"""
import sys

from cdn_uploader import CdnUploader, CdnUploaderError
from cdn_uploader.utils.progress import ConsoleReporter


def main():
    """メイン関数"""
    config_path = sys.argv[1] if len(sys.argv) > 1 else "config.json"
    try:
        uploader = CdnUploader(config_path, reporter=ConsoleReporter())
        successful, failed = uploader.run()
    except (CdnUploaderError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    # 終了コードを設定
    sys.exit(0 if failed == 0 else 1)


if __name__ == "__main__":
    main()
