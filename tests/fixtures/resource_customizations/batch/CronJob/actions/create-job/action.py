def run(obj, params):
    metadata = obj["metadata"]
    job_template = obj["spec"]["jobTemplate"]
    template_metadata = job_template.get("metadata") or {}

    annotations = dict(template_metadata.get("annotations") or {})
    annotations["cronjob.kubernetes.io/instantiate"] = "manual"

    job = {
        "apiVersion": "batch/v1",
        "kind": "Job",
        "metadata": {
            "name": metadata["name"] + "-" + datetime.now(timezone.utc).strftime("%Y%m%d%H%M"),
            "namespace": metadata.get("namespace"),
            "labels": dict(template_metadata.get("labels") or {}),
            "annotations": annotations,
            "ownerReferences": [
                {
                    "apiVersion": obj["apiVersion"],
                    "kind": obj["kind"],
                    "name": metadata["name"],
                    "uid": metadata.get("uid"),
                    "blockOwnerDeletion": True,
                    "controller": True,
                }
            ],
        },
        "spec": deepcopy(job_template["spec"]),
    }
    return [{"operation": "create", "resource": job}]
