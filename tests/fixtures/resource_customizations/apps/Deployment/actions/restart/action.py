def run(obj, params):
    template_metadata = obj["spec"]["template"].setdefault("metadata", {})
    annotations = template_metadata.get("annotations") or {}
    annotations["kubectl.kubernetes.io/restartedAt"] = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    template_metadata["annotations"] = annotations
    return obj
