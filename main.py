"""Cloud Functions デプロイ用エントリーポイント

このファイルはGCP Cloud Functionsのデプロイ時に参照されます。

デプロイコマンド:
    gcloud functions deploy duetrack-sweep \\
        --gen2 \\
        --runtime=python313 \\
        --region=us-central1 \\
        --source=. \\
        --entry-point=sweep_deadlines_http \\
        --trigger-http \\
        --set-env-vars PROJECT_ID=xxx,LOOKAHEAD_MINUTES=15
"""

from duetrack.entrypoints.cloud_function import sweep_deadlines_http  # noqa: F401

# Cloud Functionsはこのモジュールから sweep_deadlines_http をインポートする
