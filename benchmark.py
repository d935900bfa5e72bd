"""
Benchmark Script for Inpainting Methods

Compares three methods:
1. Telea (OpenCV baseline)
2. Adaptive interpolation
3. Exemplar-based patch propagation

Metrics: PSNR, SSIM, Processing Time

Usage:
    python benchmark.py --clean <clean_image> --mask <mask_image> [--output <output_dir>]

Example:
    python benchmark.py --clean data/clean.png --mask data/mask.png --radius 4 --output results/
"""

import argparse
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import cv2
import numpy as np

# Metrics
from skimage.metrics import peak_signal_noise_ratio as psnr
from skimage.metrics import structural_similarity as ssim

from adaptive import AdaptiveInpainter
from image_io import load_mask, load_rgba, mask_to_rgba, save_rgba
from inpainter import ExemplarInpainter

METHOD_NAMES = ["Telea", "Adaptive", "Exemplar"]


def load_images(clean_path: str, mask_path: str) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Load clean image, mask, and create masked input.

    Returns:
        clean_image: Ground truth (RGB)
        mask: Boolean damage grid
        masked_image: Image with the damaged region painted white (RGB)
    """
    print(f"[BENCHMARK] Loading clean image: {clean_path}")
    clean_image = load_rgba(clean_path)[..., :3].copy()

    print(f"[BENCHMARK] Loading mask: {mask_path}")
    mask = load_mask(mask_path)

    # Resize mask if needed
    if mask.shape != clean_image.shape[:2]:
        print(f"[BENCHMARK] Resizing mask from {mask.shape} to {clean_image.shape[:2]}")
        mask = cv2.resize(mask.astype(np.uint8), (clean_image.shape[1], clean_image.shape[0]),
                          interpolation=cv2.INTER_NEAREST) > 0

    masked_image = clean_image.copy()
    masked_image[mask] = [255, 255, 255]

    print(f"[BENCHMARK] Image size: {clean_image.shape[1]}×{clean_image.shape[0]}")
    print(f"[BENCHMARK] Mask pixels: {np.count_nonzero(mask)}")

    return clean_image, mask, masked_image


def calculate_metrics(ground_truth: np.ndarray, result: np.ndarray,
                      mask: np.ndarray) -> Dict[str, float]:
    """
    Calculate PSNR and SSIM between ground truth and result.

    The masked-region PSNR only looks at the pixels that were filled.
    """
    psnr_value = psnr(ground_truth, result, data_range=255)

    # SSIM needs a 7x7 window; tiny images fall back to the largest odd size
    win_size = min(7, min(ground_truth.shape[:2]))
    if win_size % 2 == 0:
        win_size -= 1
    ssim_value = ssim(ground_truth, result, channel_axis=2, data_range=255, win_size=win_size)

    gt_masked = ground_truth[mask].astype(float)
    result_masked = result[mask].astype(float)

    mse_masked = np.mean((gt_masked - result_masked) ** 2) if len(gt_masked) else 0.0
    if mse_masked > 0:
        psnr_masked = 10 * np.log10(255**2 / mse_masked)
    else:
        psnr_masked = float('inf')

    return {
        'psnr_full': float(psnr_value),
        'ssim_full': float(ssim_value),
        'psnr_masked': float(psnr_masked),
    }


def telea(image: np.ndarray, mask: np.ndarray) -> np.ndarray:
    """OpenCV Telea baseline on an RGB image."""
    bgr = cv2.cvtColor(image, cv2.COLOR_RGB2BGR)
    mask_uint8 = mask.astype(np.uint8) * 255
    result = cv2.inpaint(bgr, mask_uint8, inpaintRadius=3, flags=cv2.INPAINT_TELEA)
    return cv2.cvtColor(result, cv2.COLOR_BGR2RGB)


def build_methods(radius: int, max_passes: Optional[int] = None,
                  skip_exemplar: bool = False) -> List[Tuple[str, Callable]]:
    adaptive = AdaptiveInpainter(verbose=False)
    exemplar = ExemplarInpainter(patch_radius=radius, max_passes=max_passes, verbose=False)

    methods = [
        ("Telea", telea),
        ("Adaptive", lambda img, m: adaptive.inpaint(img, m)[..., :3]),
        ("Exemplar", lambda img, m: exemplar.inpaint(img, m)[..., :3]),
    ]
    if skip_exemplar:
        methods = [m for m in methods if m[0] != "Exemplar"]
        print("[BENCHMARK] Skipping Exemplar (--skip-exemplar flag)")
    return methods


def run_benchmark(clean_image: np.ndarray, mask: np.ndarray, masked_image: np.ndarray,
                  methods: List[Tuple[str, Callable]]) -> Dict[str, Dict]:
    """
    Run every method and collect results.
    """
    results = {}

    for name, method in methods:
        print(f"\n{'='*60}")
        print(f"[BENCHMARK] Running: {name}")
        print(f"{'='*60}")

        # Time the inpainting
        start_time = time.time()
        result = np.ascontiguousarray(method(masked_image.copy(), mask.copy()))
        elapsed_time = time.time() - start_time

        metrics = calculate_metrics(clean_image, result, mask)

        results[name] = {
            'result': result,
            'time': elapsed_time,
            'psnr': metrics['psnr_full'],
            'ssim': metrics['ssim_full'],
            'psnr_masked': metrics['psnr_masked'],
        }

        print(f"[BENCHMARK] {name} completed in {elapsed_time:.2f}s")
        print(f"[BENCHMARK] PSNR: {metrics['psnr_full']:.2f} dB | SSIM: {metrics['ssim_full']:.4f}")

    return results


def create_comparison_grid(clean_image: np.ndarray, masked_image: np.ndarray,
                           results: Dict[str, Dict]) -> np.ndarray:
    """
    Create a visual comparison grid.

    Layout: [Original] [Masked] [Telea] [Adaptive] [Exemplar]
    """
    h, w = clean_image.shape[:2]

    # Resize images if too large for display
    max_width = 300
    if w > max_width:
        scale = max_width / w
        new_w = max_width
        new_h = int(h * scale)
    else:
        new_w, new_h = w, h
        scale = 1.0

    def resize_img(img):
        if scale < 1.0:
            return cv2.resize(img, (new_w, new_h), interpolation=cv2.INTER_AREA)
        return img

    images = [
        ("Ground Truth", resize_img(clean_image)),
        ("Masked Input", resize_img(masked_image)),
    ]
    for name in METHOD_NAMES:
        if name in results:
            images.append((name, resize_img(results[name]['result'])))

    num_images = len(images)
    label_height = 40
    total_height = new_h + label_height
    total_width = new_w * num_images + 10 * (num_images - 1)  # 10px gap

    grid = np.ones((total_height, total_width, 3), dtype=np.uint8) * 40  # Dark gray background

    x_offset = 0
    for label, img in images:
        grid[0:new_h, x_offset:x_offset+new_w] = img

        cv2.rectangle(grid, (x_offset, new_h), (x_offset+new_w, total_height), (60, 60, 60), -1)

        font = cv2.FONT_HERSHEY_SIMPLEX
        font_scale = 0.5
        thickness = 1

        # centered label
        text_size = cv2.getTextSize(label, font, font_scale, thickness)[0]
        text_x = x_offset + (new_w - text_size[0]) // 2
        text_y = new_h + (label_height + text_size[1]) // 2

        cv2.putText(grid, label, (text_x, text_y), font, font_scale, (255, 255, 255), thickness)

        x_offset += new_w + 10

    return grid


def print_markdown_table(results: Dict[str, Dict]):
    """Print results as a Markdown table."""
    print("\n")
    print("=" * 70)
    print("BENCHMARK RESULTS")
    print("=" * 70)
    print()
    print("| Method | Time (s) | PSNR (dB) | Masked PSNR (dB) | SSIM |")
    print("|--------|----------|-----------|------------------|------|")

    for name in METHOD_NAMES:
        if name in results:
            r = results[name]
            print(f"| {name} | {r['time']:.2f} | {r['psnr']:.2f} | {r['psnr_masked']:.2f} | {r['ssim']:.4f} |")

    print()


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="Benchmark Inpainting Methods")
    parser.add_argument("--clean", "-c", required=True, help="Path to clean (ground truth) image")
    parser.add_argument("--mask", "-m", required=True, help="Path to mask image (alpha != 0 = damaged)")
    parser.add_argument("--output", "-o", default="benchmark_results", help="Output directory")
    parser.add_argument("--radius", "-r", type=int, default=4, help="Exemplar patch radius")
    parser.add_argument("--max-passes", type=int, default=None, help="Exemplar pass limit")
    parser.add_argument("--skip-exemplar", action="store_true",
                        help="Skip the exemplar method (useful for quick tests)")

    args = parser.parse_args(argv)

    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)

    print("=" * 70)
    print("INPAINTING BENCHMARK")
    print("=" * 70)

    clean_image, mask, masked_image = load_images(args.clean, args.mask)

    # Save masked input for reference
    save_rgba(output_dir / "input_masked.png", masked_image)
    save_rgba(output_dir / "input_mask.png", mask_to_rgba(mask))

    methods = build_methods(args.radius, args.max_passes, args.skip_exemplar)
    results = run_benchmark(clean_image, mask, masked_image, methods)

    for name, r in results.items():
        save_rgba(output_dir / f"result_{name.lower()}.png", r['result'])

    print("\n[BENCHMARK] Creating comparison grid...")
    save_rgba(output_dir / "comparison.png", create_comparison_grid(clean_image, masked_image, results))

    print_markdown_table(results)

    print(f"\n[BENCHMARK] Results saved to: {output_dir.absolute()}")
    return results


if __name__ == "__main__":
    main()
